import functools
import logging

from src.errors import ImageUploaderError

logger = logging.getLogger(__name__)


def failure_result(message: str, *, stage=None, stdout=None, stderr=None) -> dict:
    return {
        "error": True,
        "message": (
            f"Error processing image: {message}. "
            f"Stderr: {stderr or 'N/A'}. Stdout: {stdout or 'N/A'}"
        ),
        "error_details": message,
        "stage": stage,
        "stderr": stderr,
        "stdout": stdout,
        "status": "failure",
    }


def handle_errors(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except ImageUploaderError as e:
            return failure_result(
                e.message, stage=e.stage, stdout=e.stdout, stderr=e.stderr
            )
        except OSError as e:
            logger.error(f"Filesystem error during image processing: {e}")
            return failure_result(str(e))

    return wrapper
