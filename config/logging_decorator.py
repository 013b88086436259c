import functools
import inspect
import traceback
from config.logging_config import get_logger


def log_decorator(logger_name):
    logger = get_logger(logger_name)

    def decorator(func):
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                logger.info(f"Executing {func.__name__} with kwargs: {kwargs}")
                try:
                    response = await func(*args, **kwargs)
                except Exception as exc:
                    logger.error(f"Exception in {func.__name__}: {exc}, Traceback: {traceback.format_exc()}")
                    raise
                logger.info(f"Executed {func.__name__} successfully")
                return response
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger.info(f"Executing {func.__name__} with kwargs: {kwargs}")
            try:
                response = func(*args, **kwargs)
            except Exception as exc:
                logger.error(f"Exception in {func.__name__}: {exc}, Traceback: {traceback.format_exc()}")
                raise
            logger.info(f"Executed {func.__name__} successfully")
            return response
        return wrapper
    return decorator
