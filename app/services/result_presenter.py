from app.models.importing import ImportResult, ResultSummary

def present(result: ImportResult) -> ResultSummary:
    """
    Shapes a batch result for the "Import Complete" screen.
    Counts are shown exactly as the server reported them; the error list may
    be a truncated sample, so it never stands in for the failed count.
    """
    lines = [f"Row {e.row}: {e.error}" for e in result.errors]

    heading = None
    if lines:
        heading = f"Errors (first {len(lines)}{'+' if result.has_more_errors else ''})"

    return ResultSummary(
        total=result.total,
        successful=result.successful,
        failed=result.failed,
        error_heading=heading,
        error_lines=lines,
        truncated=result.has_more_errors,
    )
