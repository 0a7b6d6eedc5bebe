"""
Background task processing for compute-intensive operations.

Descriptor extraction is CPU heavy, so it runs on a small pool of worker
threads instead of the event loop. Coroutines submit work with
``run_in_worker`` and await the result.
"""
import asyncio
import logging
import queue
import threading
import time
import uuid
from concurrent.futures import Future
from typing import Any, Callable, List

from . import config

logger = logging.getLogger(__name__)

# Task states
PENDING = "pending"
RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"

task_queue: "queue.Queue[Task]" = queue.Queue()
workers: List[threading.Thread] = []
_workers_lock = threading.Lock()
MAX_WORKERS = config.MAX_WORKERS


class Task:
    """Represents a background processing task."""

    def __init__(self, func: Callable, *args, **kwargs):
        self.id = str(uuid.uuid4())
        self.func = func
        self.args = args
        self.kwargs = kwargs
        self.status = PENDING
        self.error = None
        self.future: Future = Future()
        self.created_at = time.time()
        self.started_at = None
        self.completed_at = None

    def execute(self):
        """Execute the task function and hand the outcome to its future."""
        if not self.future.set_running_or_notify_cancel():
            self.status = FAILED
            self.error = "cancelled"
            self.completed_at = time.time()
            return

        self.status = RUNNING
        self.started_at = time.time()

        try:
            result = self.func(*self.args, **self.kwargs)
        except Exception as e:
            self.error = str(e)
            self.status = FAILED
            logger.debug(f"Task {self.id} failed: {str(e)}")
            self.future.set_exception(e)
        else:
            self.status = COMPLETED
            self.future.set_result(result)
        finally:
            self.completed_at = time.time()


def worker_thread():
    """Worker thread that processes tasks from the queue."""
    logger.info(f"Starting worker thread {threading.current_thread().name}")

    while True:
        try:
            task = task_queue.get(timeout=1.0)
        except queue.Empty:
            continue

        task.execute()
        task_queue.task_done()
        logger.debug(f"Task {task.id} finished with status {task.status} "
                     f"in {task.completed_at - task.created_at:.3f}s")


def start_workers():
    """Start worker threads to process tasks."""
    with _workers_lock:
        if workers:
            return
        for i in range(MAX_WORKERS):
            t = threading.Thread(target=worker_thread, daemon=True, name=f"FaceLabel-Worker-{i+1}")
            t.start()
            workers.append(t)
        logger.info(f"Started {MAX_WORKERS} worker threads")


def submit_task(func: Callable, *args, **kwargs) -> Task:
    """Queue ``func`` for a worker thread and return the task."""
    task = Task(func, *args, **kwargs)
    start_workers()
    task_queue.put(task)
    return task


async def run_in_worker(func: Callable, *args, **kwargs) -> Any:
    """Run ``func`` on the worker pool and await its result.

    Exceptions raised by ``func`` are re-raised in the awaiting coroutine.
    """
    task = submit_task(func, *args, **kwargs)
    return await asyncio.wrap_future(task.future)
