from restcontract.core.syntax import QUOTE_CHARACTERS

PARAMETER_PREFIX = ":"


def split_path(path: str) -> list[str]:
    cleaned = "".join(ch for ch in path if ch not in QUOTE_CHARACTERS)
    if cleaned.startswith("/"):
        cleaned = cleaned[1:]
    return cleaned.split("/")


def paths_match(route_path: str, call_path: str) -> bool:
    """Whether a frontend call path addresses the backend route path.

    Route segments starting with ``:`` match any call segment. A call path
    shorter than the route matches over its own length only; a longer call path
    never matches.
    """
    route_segments = split_path(route_path)
    call_segments = split_path(call_path)
    if len(call_segments) > len(route_segments):
        return False
    for route_segment, call_segment in zip(route_segments, call_segments):
        if route_segment == call_segment or route_segment.startswith(PARAMETER_PREFIX):
            continue
        return False
    return True
