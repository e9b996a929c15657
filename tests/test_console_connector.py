# tests/test_console_connector.py

from __future__ import annotations

import asyncio
import os

import pytest

from focusflow.connectors.console_connector import _LineReader


@pytest.mark.asyncio
async def test_reader_delivers_every_buffered_line_from_an_open_pipe() -> None:
    read_fd, write_fd = os.pipe()
    try:
        reader = _LineReader(asyncio.get_running_loop(), fd=read_fd)
        os.write(write_fd, b"/add A\n/add B\n/list\n")

        # The writer stays open: all three lines must arrive without more input.
        lines = [await asyncio.wait_for(reader.readline(), timeout=1) for _ in range(3)]
        assert lines == ["/add A\n", "/add B\n", "/list\n"]
    finally:
        os.close(write_fd)
        os.close(read_fd)


@pytest.mark.asyncio
async def test_reader_returns_partial_last_line_then_eof() -> None:
    read_fd, write_fd = os.pipe()
    try:
        reader = _LineReader(asyncio.get_running_loop(), fd=read_fd)
        os.write(write_fd, "buy milk\nпочта".encode())
        os.close(write_fd)
        write_fd = -1

        assert await asyncio.wait_for(reader.readline(), timeout=1) == "buy milk\n"
        assert await asyncio.wait_for(reader.readline(), timeout=1) == "почта"
        with pytest.raises(EOFError):
            await asyncio.wait_for(reader.readline(), timeout=1)
    finally:
        if write_fd != -1:
            os.close(write_fd)
        os.close(read_fd)
