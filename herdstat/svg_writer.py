"""
Write rendered contribution graphs to disk.

The markup is parsed before writing so that a malformed document is never
written, and optionally minified.
"""

from pathlib import Path

from lxml import etree

SVG_NAMESPACE = "http://www.w3.org/2000/svg"


class SvgWriteError(Exception):
    """Raised when the SVG document cannot be serialized or written."""


def finalize_svg(markup: str, minify: bool = True) -> bytes:
    """
    Validate and serialize SVG markup.

    Args:
        markup: The rendered SVG document
        minify: Strip whitespace between elements and inside the stylesheet

    Returns:
        The UTF-8 encoded document

    Raises:
        SvgWriteError: If the markup is not well-formed XML
    """
    parser = etree.XMLParser(remove_blank_text=minify)
    try:
        root = etree.fromstring(markup.encode("utf-8"), parser)
    except etree.XMLSyntaxError as exc:
        raise SvgWriteError(f"Contribution graph is not well-formed: {exc}") from exc

    if minify:
        for style in root.iter(f"{{{SVG_NAMESPACE}}}style"):
            if style.text:
                style.text = " ".join(style.text.split())

    return etree.tostring(root, encoding="utf-8", xml_declaration=False)


def write_svg(markup: str, path: str | Path, minify: bool = True) -> Path:
    """
    Write the SVG document to `path`, creating parent directories.

    Returns:
        The path written to

    Raises:
        SvgWriteError: If the markup is malformed or the file can't be written
    """
    data = finalize_svg(markup, minify=minify)
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as exc:
        raise SvgWriteError(f"Writing contribution graph to '{path}' failed: {exc}") from exc
    return path
