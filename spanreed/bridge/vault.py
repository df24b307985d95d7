"""
Filesystem-backed host: a directory of markdown notes with YAML front matter.
"""
import asyncio
import copy
import datetime
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from spanreed.bridge.host import FrontMatterFn, Host, QueryEngine, T
from spanreed.logger import get_logger
from spanreed.protocol.errors import CapabilityUnavailableError, HandlerFault

FRONT_MATTER_FENCE = "---"
DAILY_NOTES_COMMAND = "daily-notes"


class _FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps dates/timestamps as plain strings, the way the controller expects them."""
    pass

_FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class _FrontMatterDumper(yaml.SafeDumper):
    """SafeDumper that writes date-like strings unquoted, so untouched dates keep their type on disk."""
    pass

_FrontMatterDumper.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeDumper.yaml_implicit_resolvers.items()
}


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """
    Split a note into (properties, body).

    A note without a leading `---` fence has no properties. An unterminated
    fence is treated as body text.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != FRONT_MATTER_FENCE:
        return {}, text

    for index in range(1, len(lines)):
        if lines[index].rstrip("\r\n") == FRONT_MATTER_FENCE:
            block = "".join(lines[1:index])
            body = "".join(lines[index + 1:])
            try:
                properties = yaml.load(block, Loader=_FrontMatterLoader)
            except yaml.YAMLError as e:
                raise HandlerFault(f"invalid front matter: {e}") from e
            if properties is None:
                properties = {}
            if not isinstance(properties, dict):
                raise HandlerFault("front matter is not a mapping")
            return properties, body

    return {}, text


def join_front_matter(properties: dict[str, Any], body: str) -> str:
    if not properties:
        return body
    block = yaml.dump(properties, Dumper=_FrontMatterDumper, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"{FRONT_MATTER_FENCE}\n{block}{FRONT_MATTER_FENCE}\n{body}"


class FileSystemVault(Host):

    def __init__(
            self,
            root: str,
            daily_folder: str = "",
            query_engine: Optional[QueryEngine] = None,
        ):
        self.root = Path(root)
        self.daily_folder = daily_folder.strip("/")
        self.query_engine = query_engine
        self.logger = get_logger(f"{__name__}.FileSystemVault")
        # Serializes read-modify-write of the same vault
        self._write_lock = asyncio.Lock()

    def _resolve(self, path: str) -> Path:
        resolved = (self.root / path).resolve()
        root = self.root.resolve()
        if resolved != root and root not in resolved.parents:
            raise HandlerFault(f"path {path} is outside the vault")
        return resolved

    # ==== COMMANDS ====

    async def execute_command(self, command_id: str) -> None:
        if command_id != DAILY_NOTES_COMMAND:
            raise CapabilityUnavailableError(f"command {command_id} is not available")
        name = f"{datetime.date.today().isoformat()}.md"
        path = f"{self.daily_folder}/{name}" if self.daily_folder else name
        target = self._resolve(path)
        if target.exists():
            self.logger.debug(f"Daily note {path} already exists")
            return
        target.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(target.write_text, "", encoding="utf-8")
        self.logger.info(f"Created daily note {path}")

    # ==== FILES ====

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    async def list_files(self) -> list[str]:
        def _walk() -> list[str]:
            found = []
            for dirpath, dirnames, filenames in os.walk(self.root):
                # Hidden folders hold host configuration, not notes
                dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
                for filename in sorted(filenames):
                    if filename.startswith("."):
                        continue
                    full = Path(dirpath) / filename
                    found.append(full.relative_to(self.root).as_posix())
            return found
        return await asyncio.to_thread(_walk)

    async def read_text(self, path: str) -> str:
        return await asyncio.to_thread(self._resolve(path).read_text, encoding="utf-8")

    async def read_bytes(self, path: str) -> bytes:
        return await asyncio.to_thread(self._resolve(path).read_bytes)

    async def rename(self, source: str, destination: str) -> None:
        src = self._resolve(source)
        dst = self._resolve(destination)
        if dst.exists():
            raise HandlerFault(f"File {destination} already exists")
        dst.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(src.rename, dst)

    # ==== PROPERTIES ====

    async def process_front_matter(self, path: str, fn: FrontMatterFn) -> T:
        target = self._resolve(path)
        async with self._write_lock:
            text = await asyncio.to_thread(target.read_text, encoding="utf-8")
            properties, body = split_front_matter(text)
            before = copy.deepcopy(properties)
            outcome = fn(properties)
            if properties != before:
                new_text = join_front_matter(properties, body)
                await asyncio.to_thread(target.write_text, new_text, encoding="utf-8")
        return outcome
