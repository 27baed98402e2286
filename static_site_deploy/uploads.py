"""
Uploading the site's files to S3.

Two halves: `plan_uploads` walks the local directory and decides which S3 key
each file becomes, then `UploadExecutor` puts each file into the bucket. Every
deployment uploads everything; nothing is compared against what is already in
the bucket.
"""

import logging
import mimetypes
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from botocore.exceptions import BotoCoreError, ClientError

from . import config
from .errors import LocalFileError, RemoteCallError
from .models import UploadTask

logger = logging.getLogger(__name__)


def plan_uploads(root: Union[str, Path], bucket: str) -> List[UploadTask]:
    """
    Lists every file under `root` together with the S3 key it should be stored as.

    Simple Explanation:
    This goes through the website folder and all of its sub-folders. For every
    file it finds, it works out the file's path relative to the folder, using
    forward slashes the way S3 expects. So `root/css/site.css` becomes the key
    `css/site.css`, and `root/index.html` becomes `index.html`. Empty folders
    don't produce anything, since S3 has no real folders.

    The order of the returned tasks follows the filesystem and isn't sorted.

    Args:
        root (Union[str, Path]): The local directory to upload.
        bucket (str): The name of the target S3 bucket.

    Returns:
        List[UploadTask]: One task per file.

    Raises:
        NotADirectoryError: `root` doesn't exist or isn't a directory.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise NotADirectoryError(f"Deploy directory not found: {root_path}")

    root_abs: str = os.path.abspath(root_path)
    tasks: List[UploadTask] = []

    def raise_walk_error(error: OSError) -> None:
        raise error

    for current_dir, _dirs, files in os.walk(root_abs, onerror=raise_walk_error):
        for filename in files:
            local_path: str = os.path.join(current_dir, filename)
            relative_path: str = os.path.relpath(local_path, root_abs)
            # S3 keys always use forward slashes
            key: str = Path(relative_path).as_posix()
            tasks.append(UploadTask(source=Path(local_path), bucket=bucket, key=key))

    logger.info(f"Found {len(tasks)} files to upload from '{root_abs}'")
    return tasks


def content_type_for(path: Union[str, Path]) -> str:
    """Guesses a file's MIME type from its extension, e.g. 'text/html' for index.html."""
    content_type, _ = mimetypes.guess_type(str(path))
    if content_type is None:
        return config.DEFAULT_CONTENT_TYPE
    return content_type


class UploadExecutor:
    """
    Puts planned files into S3.

    Uploads run one at a time unless `workers` is more than 1, in which case up
    to that many run at once. Either way, if any upload fails the error for the
    earliest failing task (in planned order) is raised and the deployment stops.

    Args:
        s3_client (boto3.client): An initialized S3 client.
        workers (int): How many uploads may run at the same time.
    """

    def __init__(self, s3_client: Any, workers: int = 1) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.s3_client = s3_client
        self.workers = workers

    def upload(self, task: UploadTask) -> None:
        """
        Uploads a single file with a single PutObject request.

        HTML, CSS and JavaScript get a short Cache-Control so browsers pick up
        changes quickly.
        """
        content_type: str = content_type_for(task.source)
        extra_args: Dict[str, str] = {"ContentType": content_type}
        if content_type in config.SHORT_CACHE_CONTENT_TYPES:
            extra_args["CacheControl"] = config.SHORT_CACHE_CONTROL

        try:
            with open(task.source, "rb") as body:
                self.s3_client.put_object(Bucket=task.bucket, Key=task.key, Body=body, **extra_args)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {task.source} to {task.bucket}/{task.key}. Error: {e}")
            raise RemoteCallError("PutObject", f"{task.bucket}/{task.key}: {e}") from e
        except OSError as e:
            logger.error(f"Failed to read {task.source}. Error: {e}")
            raise LocalFileError(str(task.source), str(e)) from e

    def execute(self, tasks: Sequence[UploadTask]) -> int:
        """
        Uploads every task, stopping at the first failure.

        Returns:
            int: The number of files uploaded.
        """
        total: int = len(tasks)
        if self.workers == 1:
            for i, task in enumerate(tasks):
                logger.info(f"Uploading [{i + 1}/{total}]: {task.key}")
                self.upload(task)
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                futures = [pool.submit(self.upload, task) for task in tasks]
                try:
                    # Collect in planned order so the earliest failing task is the one reported
                    for i, (task, future) in enumerate(zip(tasks, futures)):
                        future.result()
                        logger.info(f"Uploaded [{i + 1}/{total}]: {task.key}")
                except BaseException:
                    for future in futures:
                        future.cancel()
                    raise

        logger.info(f"Successfully uploaded {total} files.")
        return total
