import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError
from PyPDF2 import PdfReader, PdfWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from modules.documents.exceptions import InvalidImageError, InvalidPDFError, ValidationError

logger = logging.getLogger(__name__)

SIGNATURE_WIDTH = 150
SIGNATURE_HEIGHT = 75


@dataclass(frozen=True)
class SignatureBox:
    """Rectangle of a stamped signature in PDF space (origin bottom-left)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self):
        return (self.x + self.width / 2, self.y + self.height / 2)

    def overlaps(self, other: "SignatureBox") -> bool:
        return not (
            self.x + self.width <= other.x
            or other.x + other.width <= self.x
            or self.y + self.height <= other.y
            or other.y + other.height <= self.y
        )


def signature_box(page_width: float, page_height: float, x_ratio: float, y_ratio: float,
                  width: float = SIGNATURE_WIDTH, height: float = SIGNATURE_HEIGHT) -> SignatureBox:
    """
    Convert a centre given as fractions of the rendered page (top-left origin)
    into the box the image is drawn in.
    """
    for name, ratio in (("x_ratio", x_ratio), ("y_ratio", y_ratio)):
        if not 0.0 <= ratio <= 1.0:
            raise ValidationError(f"{name} debe estar entre 0 y 1")

    center_x = x_ratio * page_width
    center_y = page_height - y_ratio * page_height
    return SignatureBox(
        x=center_x - width / 2,
        y=center_y - height / 2,
        width=width,
        height=height,
    )


class PdfStamper:
    """Overlays a raster signature on the first page of a PDF."""

    def __init__(self, width: float = SIGNATURE_WIDTH, height: float = SIGNATURE_HEIGHT):
        self.width = width
        self.height = height

    def stamp(self, pdf_bytes: bytes, image_bytes: bytes, x_ratio: float, y_ratio: float) -> bytes:
        reader = self._read_pdf(pdf_bytes)
        signature = self._read_image(image_bytes)

        first_page = reader.pages[0]
        box = first_page.mediabox
        page_w, page_h = float(box.width), float(box.height)
        target = signature_box(page_w, page_h, x_ratio, y_ratio, self.width, self.height)

        overlay = PdfReader(io.BytesIO(self._make_overlay(page_w, page_h, signature, target)))
        first_page.merge_page(overlay.pages[0])

        writer = PdfWriter()
        for page in reader.pages:
            writer.add_page(page)

        out = io.BytesIO()
        writer.write(out)
        logger.debug("Signature stamped at (%.2f, %.2f) on a %.0fx%.0f page", target.x, target.y, page_w, page_h)
        return out.getvalue()

    @staticmethod
    def _make_overlay(page_w: float, page_h: float, signature: Image.Image, target: SignatureBox) -> bytes:
        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=(page_w, page_h))
        c.drawImage(
            ImageReader(signature),
            target.x,
            target.y,
            width=target.width,
            height=target.height,
            mask="auto",
        )
        c.save()
        return buf.getvalue()

    @staticmethod
    def _read_pdf(pdf_bytes: bytes) -> PdfReader:
        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            pages = len(reader.pages)
        except Exception as e:
            raise InvalidPDFError("PDF inválido o dañado") from e
        if pages == 0:
            raise InvalidPDFError("El PDF no tiene páginas")
        return reader

    @staticmethod
    def _read_image(image_bytes: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise InvalidImageError("La firma no es una imagen válida") from e
        return image.convert("RGBA")
