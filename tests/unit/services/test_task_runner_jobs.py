"""Unit tests for TaskRunner service."""

import asyncio

import pytest

from scrapbook.services.task_runner import TaskInfo, TaskRunner, TaskStatus


@pytest.fixture
async def runner():
    """Create, start, yield, and stop a TaskRunner."""
    r = TaskRunner()
    await r.start()
    yield r
    await r.stop()


class TestTaskSubmission:
    """Tests for submit() and initial task state."""

    @pytest.mark.asyncio
    async def test_submit_returns_uuid(self, runner: TaskRunner):
        tid = await runner.submit("enrich", lambda cb: None)
        assert isinstance(tid, str)
        assert len(tid) == 36  # UUID format

    @pytest.mark.asyncio
    async def test_submit_stores_type_and_metadata(self):
        r = TaskRunner()  # not started, so the task stays pending
        tid = await r.submit("enrich", lambda cb: None, metadata={"item_id": "abc"})
        info = r.get_task(tid)
        assert info.task_type == "enrich"
        assert info.metadata == {"item_id": "abc"}
        assert info.status == TaskStatus.PENDING
        assert not info.done


class TestTaskExecution:
    """Tests for task execution, progress, and callbacks."""

    @pytest.mark.asyncio
    async def test_sync_job_runs_to_completion(self, runner: TaskRunner):
        def work(cb):
            cb("done", 1, 1)

        tid = await runner.submit("enrich", work)
        info = await runner.wait(tid, timeout=5)
        assert info.status == TaskStatus.COMPLETED
        assert info.progress == 100
        assert info.done

    @pytest.mark.asyncio
    async def test_coroutine_job_is_awaited(self, runner: TaskRunner):
        async def work(cb):
            cb("summarizing", 1, 2)
            await asyncio.sleep(0)
            return {"item_id": "x", "summarized": True}

        tid = await runner.submit("summarize", work)
        info = await runner.wait(tid, timeout=5)
        assert info.status == TaskStatus.COMPLETED
        assert info.result == {"item_id": "x", "summarized": True}

    @pytest.mark.asyncio
    async def test_error_sets_status_and_message(self, runner: TaskRunner):
        async def failing(cb):
            raise ValueError("boom")

        tid = await runner.submit("enrich", failing)
        info = await runner.wait(tid, timeout=5)
        assert info.status == TaskStatus.ERROR
        assert info.error == "boom"

    @pytest.mark.asyncio
    async def test_progress_callback_updates_stage(self, runner: TaskRunner):
        snapshots = []

        def work(cb):
            cb("fetching", 1, 4)
            snapshots.append(runner.get_task(tid).progress)
            cb("done", 4, 4)

        tid = await runner.submit("enrich", work)
        info = await runner.wait(tid, timeout=5)
        assert snapshots == [25]
        assert info.stage == "done"

    @pytest.mark.asyncio
    async def test_serial_execution_order(self, runner: TaskRunner):
        order = []

        def make_fn(label):
            async def work(cb):
                await asyncio.sleep(0.01 if label == "first" else 0)
                order.append(label)

            return work

        await runner.submit("enrich", make_fn("first"))
        t2 = await runner.submit("enrich", make_fn("second"))
        await runner.wait(t2, timeout=5)
        assert order == ["first", "second"]

    @pytest.mark.asyncio
    async def test_on_complete_called_with_info(self, runner: TaskRunner):
        called_with = []

        async def on_done(info: TaskInfo):
            called_with.append(info.status)

        def failing(cb):
            raise RuntimeError("fail")

        tid = await runner.submit("enrich", failing, on_complete=on_done)
        await runner.wait(tid, timeout=5)
        assert called_with == [TaskStatus.ERROR]

    @pytest.mark.asyncio
    async def test_non_dict_result_wrapped(self, runner: TaskRunner):
        tid = await runner.submit("enrich", lambda cb: True)
        info = await runner.wait(tid, timeout=5)
        assert info.result == {"success": True}


class TestWait:
    """Tests for wait()."""

    @pytest.mark.asyncio
    async def test_unknown_task(self, runner: TaskRunner):
        with pytest.raises(KeyError):
            await runner.wait("nonexistent")

    @pytest.mark.asyncio
    async def test_finished_task_returns_immediately(self, runner: TaskRunner):
        tid = await runner.submit("enrich", lambda cb: None)
        await runner.wait(tid, timeout=5)
        info = await runner.wait(tid, timeout=0.01)
        assert info.status == TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_timeout(self):
        r = TaskRunner()  # never started
        tid = await r.submit("enrich", lambda cb: None)
        with pytest.raises(asyncio.TimeoutError):
            await r.wait(tid, timeout=0.05)


class TestTaskRetrieval:
    """Tests for get_task() and list_tasks()."""

    @pytest.mark.asyncio
    async def test_get_returns_none_for_unknown(self, runner: TaskRunner):
        assert runner.get_task("nonexistent") is None

    @pytest.mark.asyncio
    async def test_list_filter_by_type(self, runner: TaskRunner):
        await runner.submit("enrich", lambda cb: None)
        await runner.submit("summarize", lambda cb: None)
        assert len(runner.list_tasks()) == 2
        assert len(runner.list_tasks(task_type="enrich")) == 1
        assert len(runner.list_tasks(task_type="other")) == 0

    @pytest.mark.asyncio
    async def test_list_filter_by_status(self, runner: TaskRunner):
        t1 = await runner.submit("enrich", lambda cb: None)
        t2 = await runner.submit("enrich", lambda cb: None)
        await runner.wait(t1, timeout=5)
        await runner.wait(t2, timeout=5)
        assert len(runner.list_tasks(status=TaskStatus.COMPLETED)) == 2


class TestLifecycle:
    """Tests for start/stop."""

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        r = TaskRunner()
        await r.start()
        worker = r._worker_task
        await r.start()
        assert r._worker_task is worker
        assert r.running
        await r.stop()
        assert not r.running

    @pytest.mark.asyncio
    async def test_stop_with_pending_task(self):
        """Stopping while a task is queued doesn't crash."""
        r = TaskRunner()
        await r.start()
        await r.submit("slow", lambda cb: __import__("time").sleep(0.3))
        await asyncio.sleep(0.05)
        await r.stop()
