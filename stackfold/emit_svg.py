import hashlib
import logging
from dataclasses import dataclass, field
from xml.sax.saxutils import escape, quoteattr
from stackfold.errors import ProfileIOError

logger = logging.getLogger(__name__)

FRAME_HEIGHT = 18
FRAME_GAP = 2
HORIZONTAL_PADDING = 2
TEXT_PADDING = 4
FONT_SIZE = 12
DEFAULT_WIDTH = 1200.0


@dataclass
class FlameNode:
    """Describes a frame in the merged call tree and its inclusive weight."""

    name: str
    value: int = 0
    children: dict = field(default_factory=dict)

    def add_stack(self, frames, weight):
        node = self
        node.value += weight
        for frame in frames:
            if frame not in node.children:
                node.children[frame] = FlameNode(frame)
            node = node.children[frame]
            node.value += weight

    def depth(self):
        if not self.children:
            return 1
        return 1 + max(child.depth() for child in self.children.values())


def flame_tree(profile):
    """Merges the stacks of an aggregated profile into one call tree."""
    root = FlameNode("all")
    for stack, weight in profile.items():
        root.add_stack(stack, weight)
    return root


def _color_for(name):
    digest = hashlib.sha1(name.encode("utf-8")).digest()
    r = 180 + digest[0] % 55
    g = 120 + digest[1] % 95
    b = 90 + digest[2] % 120
    return f"#{r:02x}{g:02x}{b:02x}"


def render_svg(root, width=DEFAULT_WIDTH):
    """Renders the call tree as a flame graph, root frames at the bottom."""
    levels = max(root.depth() - 1, 1)
    height = levels * (FRAME_HEIGHT + FRAME_GAP) + FRAME_GAP
    scale = (width - 2 * HORIZONTAL_PADDING) / root.value if root.value else 1.0
    elements = [
        f'<rect x="0" y="0" width="{width:.2f}" height="{height:.2f}" fill="#ffffff"/>'
    ]

    def emit_node(node, depth, x):
        node_width = node.value * scale
        y = height - (depth + 1) * (FRAME_HEIGHT + FRAME_GAP)
        title = escape(f"{node.name} ({node.value} samples)")
        elements.append(
            f'<g class="frame"><rect x="{x:.2f}" y="{y:.2f}" width="{node_width:.2f}" '
            f'height="{FRAME_HEIGHT}" rx="2" ry="2" fill="{_color_for(node.name)}" '
            f'stroke="#333333" stroke-width="0.5"><title>{title}</title></rect>'
        )
        label = node.name
        max_chars = int((node_width - 2 * TEXT_PADDING) / (FONT_SIZE * 0.6))
        if max_chars > 3:
            if len(label) > max_chars:
                label = label[: max_chars - 3] + "..."
            elements.append(
                f'<text x="{x + TEXT_PADDING:.2f}" y="{y + FRAME_HEIGHT - 4:.2f}" '
                f'font-family={quoteattr("Helvetica,Arial,sans-serif")} '
                f'font-size="{FONT_SIZE}" fill="#000000">{escape(label)}</text>'
            )
        elements.append("</g>")

        child_x = x
        for child in node.children.values():
            emit_node(child, depth + 1, child_x)
            child_x += child.value * scale

    x = HORIZONTAL_PADDING
    for child in root.children.values():
        emit_node(child, 0, x)
        x += child.value * scale

    return (
        '<?xml version="1.0" standalone="no"?>\n'
        f'<svg version="1.1" width="{width:.2f}" height="{height:.2f}" '
        'xmlns="http://www.w3.org/2000/svg">\n' + "\n".join(elements) + "\n</svg>\n"
    )


def write_svg(profile, filename, width=DEFAULT_WIDTH):
    """Writes `profile` as a flame graph SVG file."""
    svg = render_svg(flame_tree(profile), width)
    try:
        with open(filename, "w", encoding="utf-8") as f:
            f.write(svg)
    except OSError as e:
        raise ProfileIOError(f"failed to write flamegraph to {filename}") from e
    logger.debug("wrote flamegraph of %d stacks to %s", len(profile), filename)
