from functools import wraps
import shutil

from services.exceptions import CatalogError


def check_utility_available(utility_arg: str, default: str):
    """
    Decorator to check that the executable named by the keyword argument
    utility_arg (or default when not given) can be found in PATH.
    Raises CatalogError before the decorated function runs otherwise.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            utility_name = kwargs.get(utility_arg) or default
            if not shutil.which(utility_name):
                raise CatalogError(f"{utility_name} utility not found in PATH. Please install it.")
            return func(*args, **kwargs)
        return wrapper
    return decorator
