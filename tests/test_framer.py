"""
Unit tests for sentinel framing, fed by hand instead of a real shell.
"""

import asyncio

import pytest

from shellkeep.errors import ProcessExited
from shellkeep.session.framer import CommandResult, SentinelFramer

SENTINEL = "<<exit>>"


async def settle():
    """Let zero-delay framer timers run."""
    await asyncio.sleep(0.01)


async def result_of(future) -> CommandResult:
    return await asyncio.wait_for(future, 1)


@pytest.fixture
def framer():
    return SentinelFramer(SENTINEL, output_delay=0)


class TestFrame:
    def test_frame_appends_sentinel_echo(self, framer):
        assert framer.frame("ls -la") == "ls -la; echo '<<exit>>'\n"

    @pytest.mark.asyncio
    async def test_begin_twice_is_an_error(self, framer):
        framer.begin()
        with pytest.raises(RuntimeError):
            framer.begin()


class TestStdout:
    @pytest.mark.asyncio
    async def test_sentinel_resolves_and_is_stripped(self, framer):
        fut = framer.begin()
        framer.feed_stdout("hello\n<<exit>>\n")

        result = await result_of(fut)
        assert SENTINEL not in result.output
        assert result.output.strip() == "hello"
        assert result.error_output is None

    @pytest.mark.asyncio
    async def test_no_output_is_empty_not_none(self, framer):
        fut = framer.begin()
        framer.feed_stdout("<<exit>>\n")

        result = await result_of(fut)
        assert result.output is not None
        assert result.output.strip() == ""

    @pytest.mark.asyncio
    async def test_output_over_several_chunks(self, framer):
        fut = framer.begin()
        framer.feed_stdout("line 1\n")
        framer.feed_stdout("line 2\n")
        await settle()
        assert not fut.done()

        framer.feed_stdout("line 3\n<<exit>>\n")
        result = await result_of(fut)
        assert result.output.strip() == "line 1\nline 2\nline 3"

    @pytest.mark.asyncio
    async def test_sentinel_split_across_chunks(self, framer):
        fut = framer.begin()
        framer.feed_stdout("hello\n<<ex")
        await settle()
        assert not fut.done()

        framer.feed_stdout("it>>\n")
        result = await result_of(fut)
        assert result.output.strip() == "hello"
        assert "<<ex" not in result.output

    @pytest.mark.asyncio
    async def test_sentinel_split_into_single_characters(self, framer):
        fut = framer.begin()
        for ch in "ok\n" + SENTINEL + "\n":
            framer.feed_stdout(ch)

        result = await result_of(fut)
        assert result.output.strip() == "ok"

    @pytest.mark.asyncio
    async def test_lookalike_sentinel_never_returned(self, framer):
        fut = framer.begin()
        # Command printed the marker itself, followed by the real one.
        framer.feed_stdout("<<exit>>\n<<exit>>\n")

        result = await result_of(fut)
        assert SENTINEL not in result.output

    @pytest.mark.asyncio
    async def test_stray_output_between_commands_is_dropped(self, framer):
        framer.feed_stdout("background noise\n")
        await settle()

        fut = framer.begin()
        framer.feed_stdout("x\n<<exit>>\n")
        result = await result_of(fut)
        assert result.output.strip() == "x"

    @pytest.mark.asyncio
    async def test_settle_delay_holds_output_back(self):
        framer = SentinelFramer(SENTINEL, output_delay=0.2)
        fut = framer.begin()
        framer.feed_stdout("done\n<<exit>>\n")

        await asyncio.sleep(0.05)
        assert not fut.done()
        result = await result_of(fut)
        assert result.output.strip() == "done"


class TestStderr:
    @pytest.mark.asyncio
    async def test_first_stderr_chunk_resolves(self, framer):
        fut = framer.begin()
        framer.feed_stderr("bash: nope: command not found\n")

        result = await result_of(fut)
        assert result.error_output == "bash: nope: command not found\n"
        assert result.output is None

    @pytest.mark.asyncio
    async def test_stderr_strips_sentinel(self, framer):
        fut = framer.begin()
        framer.feed_stderr("oops <<exit>>\n")

        result = await result_of(fut)
        assert SENTINEL not in result.error_output

    @pytest.mark.asyncio
    async def test_stderr_outside_a_command_is_ignored(self, framer):
        framer.feed_stderr("late warning\n")
        fut = framer.begin()
        framer.feed_stdout("<<exit>>\n")

        result = await result_of(fut)
        assert result.error_output is None

    @pytest.mark.asyncio
    async def test_stdout_before_stderr_is_kept(self, framer):
        fut = framer.begin()
        framer.feed_stdout("hi\n")
        framer.feed_stderr("ls: cannot access\n")

        result = await result_of(fut)
        assert result.output == "hi\n"
        assert result.error_output == "ls: cannot access\n"

    @pytest.mark.asyncio
    async def test_stdout_tail_is_not_cut(self, framer):
        fut = framer.begin()
        framer.feed_stdout("hello world")
        framer.feed_stderr("warning\n")

        result = await result_of(fut)
        assert result.output == "hello world"

    @pytest.mark.asyncio
    async def test_sentinel_start_left_for_owed_sentinel(self, framer):
        first = framer.begin()
        framer.feed_stdout("hi\n<<ex")
        framer.feed_stderr("err\n")

        result = await result_of(first)
        assert result.output == "hi\n"
        framer.detach()

        second = framer.begin()
        framer.feed_stdout("it>>\n")
        framer.feed_stdout("next\n<<exit>>\n")

        result = await result_of(second)
        assert framer.owed == 0
        assert result.output.strip() == "next"

    @pytest.mark.asyncio
    async def test_owed_sentinel_does_not_leak_into_next_command(self, framer):
        first = framer.begin()
        framer.feed_stderr("boom\n")
        await result_of(first)
        framer.detach()
        assert framer.owed == 1

        second = framer.begin()
        # Late stdout of the first command, its sentinel, then the second command.
        framer.feed_stdout("leftover\n<<exit>>\n")
        framer.feed_stdout("next\n<<exit>>\n")

        result = await result_of(second)
        assert framer.owed == 0
        assert result.output.strip() == "next"
        assert "leftover" not in result.output


class TestAbandon:
    @pytest.mark.asyncio
    async def test_detach_before_sentinel_owes_it(self, framer):
        framer.begin()
        framer.detach()
        assert framer.owed == 1

    @pytest.mark.asyncio
    async def test_detach_after_sentinel_owes_nothing(self, framer):
        fut = framer.begin()
        framer.feed_stdout("<<exit>>\n")
        await result_of(fut)
        framer.detach()
        assert framer.owed == 0

    @pytest.mark.asyncio
    async def test_exit_fails_pending_command(self, framer):
        fut = framer.begin()
        framer.feed_exit(3)

        with pytest.raises(ProcessExited) as exc_info:
            await result_of(fut)
        assert exc_info.value.returncode == 3

    @pytest.mark.asyncio
    async def test_close_cancels_pending_command(self, framer):
        fut = framer.begin()
        framer.feed_stdout("partial")
        framer.close()

        assert fut.cancelled()
        assert not framer.pending
