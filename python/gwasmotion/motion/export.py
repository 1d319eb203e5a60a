"""
Frame-at-a-time export and GIF assembly.

`export_frames` renders each frame, writes it to a numbered image and drops
it before the next one is produced, so memory stays bounded by one frame
(or one batch of ``n_jobs`` frames when rendering in parallel). The result
is a `FrameManifest`: the ordered (image path, delay) list that
`assemble_gif` hands to ImageMagick.

Delays are in hundredths of a second, the unit of ImageMagick's -delay.
"""

import logging
import os
import shutil
import signal
import subprocess
import sys
import threading
from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence, Union

import matplotlib.pyplot as plt
from joblib import Parallel, cpu_count, delayed
from matplotlib.figure import Figure
from rich.progress import track as rich_track
from tqdm import tqdm

from .sequencer import Frame

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Renderer = Callable[[Frame], Figure]
GIF_PROGRAMS = ("magick", "convert")


class GifAssemblyError(RuntimeError):
    """The external GIF assembler is missing or failed."""


@dataclass(frozen=True)
class ExportSettings:
    """
    Output layout and timing of an exported frame sequence.

    Parameters
    ----------
    outdir : str | Path
        Directory receiving the numbered frame images.
    pattern : str, default='frame_{index:05d}.png'
        File name pattern, formatted with the frame index.
    dpi : int, default=100
        Raster resolution passed to ``savefig``.
    hold_delay : int, default=100
        Display time of genuine frames.
    transition_delay : int, default=8
        Display time of transition frames.
    end_delay : int, default=300
        Display time of the final frame.
    loop : int, default=0
        GIF loop count, 0 loops forever.
    n_jobs : int, default=1
        Parallel rendering workers (joblib); 1 renders in-process.
    """

    outdir: PathLike = "frames"
    pattern: str = "frame_{index:05d}.png"
    dpi: int = 100
    hold_delay: int = 100
    transition_delay: int = 8
    end_delay: int = 300
    loop: int = 0
    n_jobs: int = 1

    def __post_init__(self) -> None:
        for name in ("hold_delay", "transition_delay", "end_delay"):
            if int(getattr(self, name)) < 0:
                raise ValueError(f"{name} must be >= 0.")
        if self.loop < 0:
            raise ValueError("loop must be >= 0.")
        if self.n_jobs == 0:
            raise ValueError("n_jobs must not be 0.")

    def frame_path(self, index: int) -> Path:
        return Path(self.outdir) / self.pattern.format(index=index)

    def delay_for(self, frame: Frame, last: bool) -> int:
        if last:
            return int(self.end_delay)
        return int(self.transition_delay if frame.is_transition else self.hold_delay)


@dataclass
class FrameManifest:
    """Ordered (image path, delay) entries produced by `export_frames`."""

    entries: list[tuple[Path, int]] = field(default_factory=list)
    complete: bool = False

    def __len__(self) -> int:
        return len(self.entries)

    def append(self, path: PathLike, delay: int) -> None:
        self.entries.append((Path(path), int(delay)))

    def write_tsv(self, path: PathLike) -> Path:
        path = Path(path)
        with open(path, "w", encoding="utf-8") as f:
            f.write("frame\tdelay\n")
            for img, delay in self.entries:
                f.write(f"{img}\t{delay}\n")
        return path


def _progress_iter(iterable, *, total=None, desc: str = "", enable: bool = True):
    """Rich progress on a TTY, tqdm otherwise, raw iterable when disabled."""
    if not enable:
        return iterable
    if sys.stderr.isatty():
        return rich_track(iterable, total=total, description=desc)
    return tqdm(iterable, total=total, desc=desc)


def _close_progress(bar) -> None:
    close = getattr(bar, "close", None)
    if close is not None:
        close()


def save_frame(frame: Frame, render: Renderer, settings: ExportSettings) -> Path:
    """Render one frame and write it; the figure is closed before returning."""
    path = settings.frame_path(frame.index)
    fig = render(frame)
    try:
        with open(path, "wb") as fh:
            fig.savefig(fh, dpi=settings.dpi, format=path.suffix.lstrip(".") or "png")
    finally:
        plt.close(fig)
    return path


def _save_frame_in_worker(
    frame: Frame, render: Renderer, settings: ExportSettings, parent_pid: int
) -> Path:
    """`save_frame` for pool workers. Ctrl-C is left to the parent's stop handling."""
    if os.getpid() != parent_pid and threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, signal.SIG_IGN)
    return save_frame(frame, render, settings)


def _batches(frames: Iterable[Frame], size: int) -> Iterator[list[Frame]]:
    it = iter(frames)
    while True:
        batch = list(islice(it, size))
        if not batch:
            return
        yield batch


def export_frames(
    frames: Iterable[Frame],
    render: Renderer,
    settings: ExportSettings,
    *,
    total: Optional[int] = None,
    stop: Optional[threading.Event] = None,
    progress: bool = False,
) -> FrameManifest:
    """
    Render and write frames in order.

    Parameters
    ----------
    frames : iterable of Frame
        Usually a `FrameSequencer`; consumed lazily.
    render : callable
        ``render(frame) -> Figure``.
    settings : ExportSettings
        Output layout and delays.
    total : int, optional
        Frame count, needed to give the last frame ``end_delay`` when
        ``frames`` has no ``len``.
    stop : threading.Event, optional
        When set, export stops after the current frame (or batch) and the
        manifest is returned with ``complete=False``. Pool workers ignore
        SIGINT; a KeyboardInterrupt reaching the parent mid-batch keeps the
        frames of finished batches and also returns ``complete=False``.
    progress : bool, default=False
        Show a progress bar.

    Returns
    -------
    FrameManifest
    """
    if total is None and hasattr(frames, "__len__"):
        total = len(frames)  # type: ignore[arg-type]
    Path(settings.outdir).mkdir(mode=0o755, parents=True, exist_ok=True)
    manifest = FrameManifest()

    def _record(frame: Frame, path: Path) -> None:
        last = total is not None and frame.index == total - 1
        manifest.append(path, settings.delay_for(frame, last))

    n_jobs = int(settings.n_jobs)
    if n_jobs == 1:
        bar = _progress_iter(frames, total=total, desc="Exporting frames", enable=progress)
        try:
            for frame in bar:
                _record(frame, save_frame(frame, render, settings))
                if stop is not None and stop.is_set():
                    logger.warning(f"Export stopped after frame {frame.index}.")
                    return manifest
        finally:
            if progress:
                _close_progress(bar)
    else:
        batch_size = n_jobs if n_jobs > 0 else max(1, int(cpu_count()))
        n_batches = None if total is None else -(-total // batch_size)
        bar = _progress_iter(
            _batches(frames, batch_size), total=n_batches, desc="Exporting frames", enable=progress
        )
        parent_pid = os.getpid()
        try:
            with Parallel(n_jobs=n_jobs, backend="loky") as parallel:
                for batch in bar:
                    try:
                        paths = parallel(
                            delayed(_save_frame_in_worker)(f, render, settings, parent_pid)
                            for f in batch
                        )
                    except KeyboardInterrupt:
                        logger.warning(
                            f"Export interrupted; {len(manifest)} frames from finished batches kept."
                        )
                        return manifest
                    for frame, path in zip(batch, paths):
                        _record(frame, path)
                    if stop is not None and stop.is_set():
                        logger.warning(f"Export stopped after frame {batch[-1].index}.")
                        return manifest
        finally:
            if progress:
                _close_progress(bar)

    if total is None and manifest.entries:
        img, _ = manifest.entries[-1]
        manifest.entries[-1] = (img, int(settings.end_delay))
    manifest.complete = True
    return manifest


def find_gif_program(program: Optional[str] = None) -> str:
    """Full path of the ImageMagick executable (``magick`` or ``convert``)."""
    candidates: Sequence[str] = (program,) if program else GIF_PROGRAMS
    for name in candidates:
        found = shutil.which(str(name))
        if found:
            return found
    raise GifAssemblyError(
        f"GIF assembler not found in PATH (tried: {', '.join(str(c) for c in candidates)})."
    )


def gif_command(program: str, manifest: FrameManifest, output: PathLike, loop: int = 0) -> list[str]:
    """ImageMagick argument list with one -delay per frame, in manifest order."""
    cmd = [str(program), "-loop", str(int(loop))]
    for img, delay in manifest.entries:
        cmd.extend(["-delay", str(int(delay)), str(img)])
    cmd.append(str(output))
    return cmd


def assemble_gif(
    manifest: FrameManifest,
    output: PathLike,
    loop: int = 0,
    program: Optional[str] = None,
) -> Path:
    """
    Run ImageMagick once over the manifest.

    Frame images are never removed here, so a failed run leaves them on
    disk for inspection.
    """
    if len(manifest) == 0:
        raise GifAssemblyError("No frames to assemble.")
    exe = find_gif_program(program)
    cmd = gif_command(exe, manifest, output, loop=loop)
    logger.info(f"Assembling {len(manifest)} frames with {Path(exe).name}...")
    try:
        subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except subprocess.CalledProcessError as e:
        raise GifAssemblyError(
            f"{Path(exe).name} exited with status {e.returncode}: {(e.stderr or '').strip()}"
        ) from e
    return Path(output)
