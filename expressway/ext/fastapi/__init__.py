from .core import Call, Service, add_application_to_app, get_application, get_application_from_app

__all__ = [
    "Call",
    "Service",
    "add_application_to_app",
    "get_application",
    "get_application_from_app",
]
