"""Cairo drawing helpers for the selection overlay."""

import cairo

# Lime outline and a faint lime fill over the selection
SELECTION_RGB = (0.0, 1.0, 0.0)
SELECTION_FILL_ALPHA = 40 / 255


def draw_tint(cr: cairo.Context, opacity: float):
    """Replace the whole surface with a translucent black tint."""
    cr.save()
    cr.set_operator(cairo.OPERATOR_SOURCE)
    cr.set_source_rgba(0, 0, 0, opacity)
    cr.paint()
    cr.restore()


def draw_selection(cr: cairo.Context, x: int, y: int, width: int, height: int):
    """Draw a lightly tinted fill and a high-contrast border over the selection."""
    cr.set_source_rgba(*SELECTION_RGB, SELECTION_FILL_ALPHA)
    cr.rectangle(x, y, width, height)
    cr.fill()

    cr.set_source_rgb(*SELECTION_RGB)
    cr.set_line_width(2)
    cr.rectangle(x, y, width, height)
    cr.stroke()


def draw_dimension_text(cr: cairo.Context, x: int, y: int, width: int, height: int):
    """Draw the selection size just below its bottom-left corner."""
    cr.select_font_face("monospace", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_BOLD)
    cr.set_font_size(13)
    dim_text = f"{width} x {height}"
    extents = cr.text_extents(dim_text)

    text_x = x
    text_y = y + height + extents.height + 8

    cr.set_source_rgba(0, 0, 0, 0.8)
    cr.rectangle(
        text_x - 4,
        text_y - extents.height - 4,
        extents.width + 8,
        extents.height + 8,
    )
    cr.fill()

    cr.set_source_rgb(1, 1, 1)
    cr.move_to(text_x, text_y)
    cr.show_text(dim_text)


def draw_prompt(cr: cairo.Context, text: str, x: int = 20, y: int = 20):
    """Draw the instruction text with its top-left corner at (x, y)."""
    cr.select_font_face("sans-serif", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_BOLD)
    cr.set_font_size(16)

    for line in text.splitlines() or [""]:
        extents = cr.text_extents(line)
        baseline = y + extents.height
        cr.set_source_rgb(1, 1, 1)
        cr.move_to(x, baseline)
        cr.show_text(line)
        y = baseline + 8
