"""
Unit tests for the command-line entry point.
"""

import asyncio
from importlib.metadata import metadata

import pytest

import triscan
from triscan.__main__ import _select_runner


class TestEntryPoint:
    """Tests for entry point helpers."""

    def test_runner_without_uvloop(self) -> None:
        """Test the default asyncio runner when uvloop is disabled."""
        run, enabled = _select_runner(False)

        assert run is asyncio.run
        assert not enabled

    def test_runner_with_uvloop(self) -> None:
        """Test uvloop.run drives the engine coroutine when installed."""
        uvloop = pytest.importorskip("uvloop")

        async def loop_name() -> int:
            return int(isinstance(asyncio.get_running_loop(), uvloop.Loop))

        run, enabled = _select_runner(True)

        assert enabled
        assert run is uvloop.run
        assert run(loop_name()) == 1

    def test_package_metadata(self) -> None:
        """Test the package exposes only its own metadata."""
        assert triscan.__version__ == metadata("triscan")["Version"]
        assert not hasattr(triscan, "__author__")
