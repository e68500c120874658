"""
High-level orchestration of the endnote migration.

This module defines :class:`EndnoteMigrationTool`, which runs the three
ordered stages of a migration against one Ghost site:

1. **initialise**: validate the options into a :class:`RunConfig`,
   normalize the endpoint, build the endnote block and open the Admin API
   client.
2. **discover**: fetch the targeted posts with every content format.
3. **apply**: for each post, pick its representation, upsert the endnote
   and write the post back guarded by its ``updated_at`` stamp.

All run state lives on an :class:`ExecutionContext`.  Failures in the first
two stages are fatal: they are recorded, the tool moves to ``FAILED`` and
the error is re-raised.  Failures while applying are recorded against the
post and the batch continues; the caller derives overall success from
``context.updated`` and ``context.errors``.
"""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ghost_endnote.config import RunConfig
from ghost_endnote.extractors.ghost_discovery import DiscoverFn, discover, fetch_posts_by_id
from ghost_endnote.migrators.ghost_admin import GhostAdminClient
from ghost_endnote.models.ghost_post import EndnoteBlock, PostRecord, classify
from ghost_endnote.parsers.endnote import transform
from ghost_endnote.utils.errors import (
    ConfigurationError,
    DiscoveryError,
    error_code_for,
    report_error,
    report_ok,
)
from ghost_endnote.utils.pacing import Pacer

StoreFactory = Callable[[RunConfig], Any]


class PipelineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    DISCOVERED = "discovered"
    APPLYING = "applying"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ExecutionContext:
    """
    Run-scoped state threaded through every stage.

    ``updated`` and ``errors`` are append-only and may be appended to from
    several workers at once; use :meth:`record_update` and
    :meth:`record_error` rather than touching the lists directly.
    """

    def __init__(self) -> None:
        self.config: Optional[RunConfig] = None
        self.endnote: Optional[EndnoteBlock] = None
        self.store: Any = None
        self.posts: List[PostRecord] = []
        self.updated: List[str] = []
        self.errors: List[BaseException] = []
        self.state: PipelineState = PipelineState.UNINITIALIZED
        self._lock = threading.Lock()

    def record_update(self, location: str) -> bool:
        """Append ``location`` unless already present.  Returns whether it was added."""
        with self._lock:
            if location in self.updated:
                return False
            self.updated.append(location)
            return True

    def record_error(self, error: BaseException) -> None:
        with self._lock:
            self.errors.append(error)

    @property
    def succeeded(self) -> bool:
        return bool(self.updated)


def default_store_factory(config: RunConfig) -> GhostAdminClient:
    return GhostAdminClient(config.endpoint, config.admin_api_key, version=config.api_version)


class EndnoteMigrationTool:
    """
    Encapsulates the state and behavior of one endnote migration run.

    :param options: Flat options dictionary (see :func:`ghost_endnote.config.load_options`).
    :param store_factory: Builds the store handle from the validated config.
    :param discover_fn: The paginated discovery capability.
    :param cancel_event: Setting it stops new posts from starting.
    :param sleep_fn: Replaces the pacing wait (tests).
    """

    def __init__(
        self,
        options: Dict[str, Any],
        *,
        store_factory: StoreFactory = default_store_factory,
        discover_fn: DiscoverFn = discover,
        cancel_event: Optional[threading.Event] = None,
        sleep_fn: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.options = dict(options)
        self.store_factory = store_factory
        self.discover_fn = discover_fn
        self.cancel_event = cancel_event or threading.Event()
        self.sleep_fn = sleep_fn
        self.context = ExecutionContext()

    @property
    def state(self) -> PipelineState:
        return self.context.state

    @property
    def reports_dir(self) -> str:
        if self.context.config is not None:
            return self.context.config.reports_dir
        return self.options.get("reports_dir") or os.path.join("reports", "migration")

    @property
    def verbose(self) -> bool:
        if self.context.config is not None:
            return self.context.config.verbose
        return bool(self.options.get("verbose"))

    def log_message(self, message: str, level: str = "INFO") -> None:
        if level == "DEBUG" and not self.verbose:
            return
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        print(f"[{level}] {message}")
        # Append to log file
        os.makedirs(self.reports_dir, exist_ok=True)
        with open(os.path.join(self.reports_dir, "migration.log"), "a", encoding="utf-8") as f:
            f.write(f"[{timestamp}] {level}: {message}\n")

    def cancel(self) -> None:
        self.cancel_event.set()

    def _fail(self, error: BaseException) -> None:
        self.context.record_error(error)
        self.context.state = PipelineState.FAILED

    def _expect(self, state: PipelineState) -> None:
        if self.context.state is not state:
            raise RuntimeError(f"Expected pipeline state {state.value}, found {self.context.state.value}")

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def initialise(self) -> ExecutionContext:
        self._expect(PipelineState.UNINITIALIZED)
        ctx = self.context
        try:
            config = RunConfig.from_options(self.options)
            ctx.config = config
            ctx.endnote = EndnoteBlock(content=config.content)
            try:
                ctx.store = self.store_factory(config)
            except ConfigurationError:
                raise
            except Exception as e:
                raise ConfigurationError(f"Could not open Admin API connection: {e}") from e
        except ConfigurationError as e:
            self._fail(e)
            self.log_message(f"Error initialising API connection: {e}", "ERROR")
            raise
        ctx.state = PipelineState.INITIALIZED
        self.log_message(f"Initialised API connection for {config.endpoint}")
        return ctx

    def discover(self) -> List[PostRecord]:
        self._expect(PipelineState.INITIALIZED)
        ctx = self.context
        try:
            ctx.posts = fetch_posts_by_id(ctx.store, ctx.config.post_ids, discover_fn=self.discover_fn)
        except DiscoveryError as e:
            self._fail(e)
            self.log_message(f"Error fetching posts: {e}", "ERROR")
            raise
        except Exception as e:
            error = DiscoveryError(f"Could not fetch posts: {e}")
            self._fail(error)
            self.log_message(f"Error fetching posts: {e}", "ERROR")
            raise error from e
        ctx.state = PipelineState.DISCOVERED
        self.log_message(f"Found {len(ctx.posts)} posts")
        found = {p.id for p in ctx.posts}
        missing = [i for i in ctx.config.post_ids if i not in found]
        if missing:
            self.log_message(f"Posts not found: {', '.join(missing)}", "WARNING")
        return ctx.posts

    def update_post(self, post: PostRecord, pacer: Pacer) -> None:
        """Upsert the endnote into one post and write it back.  Errors are recorded, not raised."""
        ctx = self.context
        try:
            representation = classify(post)
            self.log_message(f"Post '{post.label}' uses {representation.kind} content", "DEBUG")
            update = transform(representation, ctx.endnote)
            result = ctx.store.edit_post(post.id, post.updated_at, update.payload(), source=update.source)
            location = (result or {}).get("url") or post.url or post.id
            ctx.record_update(location)
        except Exception as e:
            if getattr(e, "resource", None) is None:
                e.resource = post.resource()  # type: ignore[attr-defined]
            ctx.record_error(e)
            report_error(error_code_for(e), post.resource(), e, report_dir=self.reports_dir)
            self.log_message(f"Failed to update post '{post.label}': {e}", "ERROR")
            return
        # The post is already written; a ledger failure must not count against it.
        try:
            report_ok("ENDNOTE_UPDATED", post.resource(), {"url": location, "format": representation.kind}, report_dir=self.reports_dir)
        except OSError as e:
            self.log_message(f"Could not record success for post '{post.label}': {e}", "WARNING")
        pacer.wait()

    def apply(self) -> ExecutionContext:
        self._expect(PipelineState.DISCOVERED)
        ctx = self.context
        ctx.state = PipelineState.APPLYING
        if not ctx.posts:
            ctx.state = PipelineState.DONE
            return ctx

        pacer = Pacer(ctx.config.delay_between_calls, cancel_event=self.cancel_event, sleep_fn=self.sleep_fn)
        skipped: List[PostRecord] = []
        skipped_lock = threading.Lock()

        def run_one(post: PostRecord) -> None:
            if self.cancel_event.is_set():
                with skipped_lock:
                    skipped.append(post)
                return
            self.update_post(post, pacer)

        try:
            executor = ThreadPoolExecutor(max_workers=ctx.config.concurrency, thread_name_prefix="endnote")
        except (RuntimeError, ValueError) as e:
            self._fail(e)
            self.log_message(f"Could not start workers: {e}", "ERROR")
            raise
        with executor:
            futures = [executor.submit(run_one, post) for post in ctx.posts]
            wait(futures)
        for future in futures:
            fault = future.exception()
            if fault is not None:
                # update_post records its own errors; anything here is a pipeline fault.
                self._fail(fault)
                raise fault

        if skipped:
            ctx.state = PipelineState.CANCELLED
            self.log_message(f"Cancelled: {len(skipped)} posts were not processed", "WARNING")
        else:
            ctx.state = PipelineState.DONE
        return ctx

    def run(self) -> ExecutionContext:
        """
        Run every stage in order.

        :return: The execution context, in ``DONE`` or ``CANCELLED`` state.
        :raises ConfigurationError: if the options are invalid.
        :raises DiscoveryError: if the posts could not be fetched.
        """
        self.initialise()
        if self.cancel_event.is_set():
            self.context.state = PipelineState.CANCELLED
            return self.context
        self.discover()
        if self.cancel_event.is_set():
            self.context.state = PipelineState.CANCELLED
            return self.context
        return self.apply()
