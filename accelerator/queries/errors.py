class UpstreamQueryError(Exception):
    """The upstream node could not be queried or returned an unexpected payload."""
