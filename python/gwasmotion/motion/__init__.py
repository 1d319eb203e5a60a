from .easing import get_easing, linear, tanh_ease
from .sequencer import (
    Frame,
    FrameSequencer,
    State,
    frame_count,
    pathway_states,
    scalar_states,
    transition_fractions,
)
from .export import (
    ExportSettings,
    FrameManifest,
    GifAssemblyError,
    assemble_gif,
    export_frames,
)

__all__ = [
    "get_easing",
    "linear",
    "tanh_ease",
    "Frame",
    "FrameSequencer",
    "State",
    "frame_count",
    "pathway_states",
    "scalar_states",
    "transition_fractions",
    "ExportSettings",
    "FrameManifest",
    "GifAssemblyError",
    "assemble_gif",
    "export_frames",
]
