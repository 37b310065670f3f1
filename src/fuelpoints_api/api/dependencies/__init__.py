from .context import RequestContext, get_request_context, require_roles

__all__ = ["RequestContext", "get_request_context", "require_roles"]
