from typing import Callable, Optional

from .config import StudioSettings
from .export import DownloadTrigger, ExportJob, ExportPipeline, FileDownloader, Rasterizer
from .rasterize import PillowRasterizer
from .render import VisualDescription
from .session import CompositionSession, RenderContext


class PreviewSurface:
    """
    On-screen preview the export pipeline captures from.

    `node` stays None until the surface is mounted; afterwards it follows
    every re-render of the session.
    """

    def __init__(self, session: CompositionSession) -> None:
        self.session = session
        self.node: Optional[VisualDescription] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    def mount(self) -> None:
        if self.mounted:
            return
        self.node = self.session.render_context.description
        self._unsubscribe = self.session.subscribe(self._on_render)

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self.node = None

    def _on_render(self, context: RenderContext) -> None:
        self.node = context.description


class CardStudio:
    """
    Wires one interactive session:
    - composition session (scenario, edits, background)
    - preview surface acting as the capture target
    - export pipeline delivering PNGs through the download trigger
    """

    def __init__(
        self,
        settings: Optional[StudioSettings] = None,
        rasterizer: Optional[Rasterizer] = None,
        download: Optional[DownloadTrigger] = None,
        scenario_id: Optional[str] = None,
        background_id: Optional[str] = None,
    ) -> None:
        self.settings = settings or StudioSettings()
        self.session = CompositionSession(scenario_id=scenario_id, background_id=background_id)
        self.preview = PreviewSurface(self.session)
        self.rasterizer = rasterizer or PillowRasterizer(
            font_path=self.settings.font_path,
            bold_font_path=self.settings.bold_font_path,
        )
        self.download = download or FileDownloader(self.settings.output_dir)
        self.pipeline = ExportPipeline(
            rasterizer=self.rasterizer,
            download=self.download,
            target=lambda: self.preview.node,
            label=lambda: self.session.scenario.label,
            pixel_ratio=self.settings.pixel_ratio,
            timeout=self.settings.export_timeout,
        )

    async def export(self) -> Optional[ExportJob]:
        return await self.pipeline.request_export()
