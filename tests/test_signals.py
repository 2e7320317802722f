"""
Tests for the command channel.
"""
import threading
import time

from shader_assist.signals import CommandChannel


class TestCommandChannel:
    """Test recompile and exit signals."""

    def test_initially_clear(self):
        channel = CommandChannel()
        assert not channel.recompile_requested
        assert not channel.exit_requested

    def test_recompile_set_and_clear(self):
        channel = CommandChannel()
        channel.request_recompile()
        assert channel.recompile_requested

        channel.clear_recompile()
        assert not channel.recompile_requested

    def test_signals_are_independent(self):
        channel = CommandChannel()
        channel.request_exit()

        assert channel.exit_requested
        assert not channel.recompile_requested

    def test_wait_for_exit_times_out(self):
        channel = CommandChannel()
        start = time.monotonic()
        assert channel.wait_for_exit(0.05) is False
        assert time.monotonic() - start >= 0.04

    def test_exit_from_another_thread_wakes_waiter(self):
        """A quit from the CLI thread should wake a sleeping watcher early."""
        channel = CommandChannel()
        setter = threading.Timer(0.05, channel.request_exit)
        setter.start()
        try:
            start = time.monotonic()
            assert channel.wait_for_exit(5.0) is True
            assert time.monotonic() - start < 2.0
        finally:
            setter.cancel()
