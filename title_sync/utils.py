from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import List

import aiofiles

from .const import MD_GLOB


def run_in_thread(func, *args, **kwargs):
    loop = asyncio.get_running_loop()
    return loop.run_in_executor(None, lambda: func(*args, **kwargs))


async def read_text(path: Path) -> str:
    # newline="" keeps \r\n intact so untouched lines round-trip byte for byte
    async with aiofiles.open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
        return await f.read()


def _make_temp(path: Path) -> Path:
    fd, name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    os.close(fd)
    return Path(name)


def _replace(tmp_path: Path, path: Path) -> None:
    if path.exists():
        os.chmod(tmp_path, path.stat().st_mode & 0o7777)
    os.replace(tmp_path, path)


async def atomic_write_text(path: Path, text: str) -> None:
    """Write to a temp file next to ``path`` and swap it in with os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = await run_in_thread(_make_temp, path)
    try:
        async with aiofiles.open(tmp_path, "w", encoding="utf-8", newline="") as tmp:
            await tmp.write(text)
            await tmp.flush()
            await run_in_thread(os.fsync, tmp.fileno())
        await run_in_thread(_replace, tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def list_markdown(directory: Path) -> List[Path]:
    return sorted(p for p in directory.glob(MD_GLOB) if p.is_file())
