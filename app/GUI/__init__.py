from .render_bridge import RenderBridge

__all__ = [
    'RenderBridge',
]
