"""Repeated-peeking warnings for A/B tests that are re-analyzed over time."""


def repeated_peek_warning(
    n_observed: int,
    n_analyses: int,
    n_planned: int = 0,
) -> str:
    """
    Warning text for peeking at a running test, or "" if none applies.

    Args:
        n_observed: Interactions on both variants at this look
        n_analyses: Analyses run so far, this one included
        n_planned: Planned combined sample size (0 when none was registered)
    """
    warnings = []
    if n_planned and n_observed < n_planned:
        warnings.append(
            f"Early analysis: {n_observed}/{n_planned} "
            f"({100 * n_observed / n_planned:.0f}%) of the planned sample observed."
        )
    if n_analyses > 1:
        warnings.append(
            f"Multiple analyses ({n_analyses}) performed. "
            "Each extra look at a fixed threshold raises the false-winner rate."
        )
    return " ".join(warnings)
