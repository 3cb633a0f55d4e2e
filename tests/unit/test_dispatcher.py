# =============================================================================
# tests/unit/test_dispatcher.py
# Unit Tests for BackgroundDispatcher
# =============================================================================

import threading

from fintrack_core.errors import RemoteUnreachableError
from fintrack_core.sync.dispatcher import BackgroundDispatcher


class TestBackgroundDispatcher:
    """One-shot daemon tasks with failure observers"""

    def test_task_runs_off_the_calling_thread(self):
        seen = []
        dispatcher = BackgroundDispatcher()

        thread = dispatcher.submit("probe", lambda: seen.append(threading.current_thread().name))
        assert thread.daemon
        assert dispatcher.join(timeout=5)

        assert seen == ["fintrack:probe"]
        assert dispatcher.stats.succeeded == 1
        assert dispatcher.pending_count == 0

    def test_arguments_are_passed(self):
        seen = []
        dispatcher = BackgroundDispatcher()
        dispatcher.submit("add", lambda a, b: seen.append(a + b), 2, 3)
        dispatcher.join(timeout=5)

        assert seen == [5]

    def test_failure_is_counted_and_observed(self):
        failures = []
        dispatcher = BackgroundDispatcher(on_failure=lambda name, err: failures.append((name, err)))

        def fail():
            raise RemoteUnreachableError("down", store="supabase")

        dispatcher.submit("supabase:save:npf_2025", fail)
        dispatcher.join(timeout=5)

        assert dispatcher.stats.failed == 1
        assert dispatcher.stats.last_failure.startswith("supabase:save:npf_2025")
        assert failures[0][0] == "supabase:save:npf_2025"

    def test_failure_is_not_retried(self):
        calls = []
        dispatcher = BackgroundDispatcher()

        def fail():
            calls.append(1)
            raise RuntimeError("boom")

        dispatcher.submit("once", fail)
        dispatcher.join(timeout=5)
        assert calls == [1]

    def test_broken_observer_is_contained(self):
        seen = []
        dispatcher = BackgroundDispatcher(on_failure=lambda name, err: 1 / 0)
        dispatcher.register_observer(lambda name, err: seen.append(name))

        dispatcher.submit("task", lambda: 1 / 0)
        dispatcher.join(timeout=5)

        assert seen == ["task"]

    def test_unregister_observer(self):
        seen = []
        observer = lambda name, err: seen.append(name)  # noqa: E731
        dispatcher = BackgroundDispatcher(on_failure=observer)
        dispatcher.unregister_observer(observer)

        dispatcher.submit("task", lambda: 1 / 0)
        dispatcher.join(timeout=5)
        assert seen == []

    def test_finished_tasks_are_released(self):
        dispatcher = BackgroundDispatcher()

        threads = [dispatcher.submit(f"save:{i}", lambda: None) for i in range(50)]
        threads.append(dispatcher.submit("fails", lambda: 1 / 0))
        for thread in threads:
            thread.join(timeout=5)

        assert dispatcher._threads == []
        assert dispatcher.stats.dispatched == 51
