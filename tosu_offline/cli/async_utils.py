"""
Async CLI utilities.

Helpers for running the async offline services from synchronous Typer
commands.
"""

import asyncio
import functools
from collections.abc import Awaitable, Callable, Coroutine
from concurrent.futures import ThreadPoolExecutor
from typing import Any, ParamSpec, TypeVar

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

P = ParamSpec("P")
T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run an async coroutine from synchronous code.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None:
        # Already in async context - run in executor
        with ThreadPoolExecutor() as pool:
            future = pool.submit(asyncio.run, coro)
            return future.result()
    return asyncio.run(coro)


def async_command(
    console: Console | None = None,
    show_spinner: bool = True,
    spinner_text: str = "Processing...",
) -> Callable[[Callable[P, Coroutine[Any, Any, T]]], Callable[P, T]]:
    """
    Decorator to make async functions work as Typer commands.

    Usage:
        @app.command()
        @async_command(spinner_text="Reconciling...")
        async def reconcile():
            ...
    """
    _console = console or Console()

    def decorator(func: Callable[P, Coroutine[Any, Any, T]]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            async def run_with_spinner() -> T:
                if not show_spinner:
                    return await func(*args, **kwargs)
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    console=_console,
                    transient=True,
                ) as progress:
                    progress.add_task(description=spinner_text, total=None)
                    return await func(*args, **kwargs)

            return run_async(run_with_spinner())

        return wrapper

    return decorator


async def gather_with_progress(
    tasks: list[Awaitable[T]],
    console: Console | None = None,
    description: str = "Processing...",
) -> list[T]:
    """
    Run several awaitables concurrently with a progress indicator.

    Returns:
        Results in the same order as the input
    """
    _console = console or Console()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("({task.completed}/{task.total})"),
        console=_console,
        transient=True,
    ) as progress:
        task_id = progress.add_task(description, total=len(tasks))

        async def track_progress(coro: Awaitable[T]) -> T:
            result = await coro
            progress.advance(task_id)
            return result

        return await asyncio.gather(*[track_progress(t) for t in tasks])
