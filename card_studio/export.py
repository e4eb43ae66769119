import asyncio
import base64
import binascii
import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Tuple

from .render import VisualDescription


logger = logging.getLogger(__name__)

FILENAME_SUFFIX = "-email-card.png"
DEFAULT_PIXEL_RATIO = 2.0

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)


class Rasterizer(Protocol):
    def capture(
        self,
        node: VisualDescription,
        *,
        cache_bust: bool,
        pixel_ratio: float,
    ) -> Awaitable[str]:
        ...


DownloadTrigger = Callable[[str, str], Any]
CaptureTarget = Callable[[], Optional[VisualDescription]]


class ExportState(enum.Enum):
    IDLE = "idle"
    EXPORTING = "exporting"


@dataclass
class ExportJob:
    """One rasterize-and-download attempt."""

    target: VisualDescription
    filename: str
    in_progress: bool = True
    saved_to: Optional[Path] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return not self.in_progress and self.error is None


def slugify_label(label: str) -> str:
    """Lower-case and collapse whitespace runs into single hyphens."""
    return re.sub(r"\s+", "-", label.lower())


def export_filename(label: str) -> str:
    return f"{slugify_label(label)}{FILENAME_SUFFIX}"


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    match = _DATA_URL.match(data_url)
    if not match:
        raise ValueError("Not a data URL")
    mime = match.group("mime") or "text/plain"
    payload = match.group("data")
    if match.group("b64"):
        try:
            return mime, base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Malformed base64 payload: {exc}") from exc
    return mime, payload.encode("utf-8")


class FileDownloader:
    """
    Download trigger that saves exports into a directory.

    Existing files are never overwritten: like a browser, a clashing name
    gets a ` (1)`, ` (2)`, ... suffix before the extension.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.saved: List[Path] = []

    def __call__(self, data_url: str, filename: str) -> Path:
        _, data = decode_data_url(data_url)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self._free_path(filename)
        path.write_bytes(data)
        self.saved.append(path)
        logger.info("Saved export to %s", path)
        return path

    def _free_path(self, filename: str) -> Path:
        candidate = self.output_dir / filename
        stem, suffix = candidate.stem, candidate.suffix
        counter = 1
        while candidate.exists():
            candidate = self.output_dir / f"{stem} ({counter}){suffix}"
            counter += 1
        return candidate


class ExportPipeline:
    """
    Two-state (Idle/Exporting) export machine.

    At most one export is in flight: a request made while exporting, or
    before the capture target exists, is a no-op that returns None.
    """

    def __init__(
        self,
        rasterizer: Rasterizer,
        download: DownloadTrigger,
        target: CaptureTarget,
        label: Callable[[], str],
        pixel_ratio: float = DEFAULT_PIXEL_RATIO,
        timeout: Optional[float] = None,
    ) -> None:
        self.rasterizer = rasterizer
        self.download = download
        self.target = target
        self.label = label
        self.pixel_ratio = pixel_ratio
        self.timeout = timeout
        self._state = ExportState.IDLE

    @property
    def state(self) -> ExportState:
        return self._state

    @property
    def is_exporting(self) -> bool:
        return self._state is ExportState.EXPORTING

    @property
    def export_enabled(self) -> bool:
        """Whether the export control should accept clicks."""
        return not self.is_exporting

    async def request_export(self) -> Optional[ExportJob]:
        node = self.target()
        if node is None or self.is_exporting:
            return None

        # Enter Exporting before the first await so overlapping requests bail out.
        self._state = ExportState.EXPORTING
        try:
            job = ExportJob(target=node, filename=export_filename(self.label()))
            await self._run(job)
        finally:
            self._state = ExportState.IDLE
        return job

    async def _run(self, job: ExportJob) -> None:
        node = job.target
        try:
            capture = self.rasterizer.capture(
                node, cache_bust=True, pixel_ratio=self.pixel_ratio
            )
            if self.timeout is not None:
                data_url = await asyncio.wait_for(capture, timeout=self.timeout)
            else:
                data_url = await capture
            saved = self.download(data_url, job.filename)
            if isinstance(saved, Path):
                job.saved_to = saved
        except Exception as exc:
            job.error = exc
            logger.exception("Failed to export image %s", job.filename)
        finally:
            job.in_progress = False
