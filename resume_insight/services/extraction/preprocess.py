import numpy as np
from PIL import Image, ImageFilter

MIN_OCR_DIMENSION = 1000
THRESHOLD_FACTOR = 0.9


def prepare_page_image(img: Image.Image) -> Image.Image:
    """
    Binarizes a rendered page image before it is handed to Tesseract.
    Small renders are upscaled first; the cut-off follows the median brightness
    so dim scans and bright exports both threshold cleanly.
    """
    img = img.convert("L")

    longest = max(img.size)
    if 0 < longest < MIN_OCR_DIMENSION:
        scale = MIN_OCR_DIMENSION / longest
        img = img.resize((int(img.size[0] * scale), int(img.size[1] * scale)), Image.LANCZOS)

    img = img.filter(ImageFilter.SHARPEN)

    pixels = np.array(img)
    cutoff = np.median(pixels) * THRESHOLD_FACTOR
    binary = (pixels > cutoff) * 255
    return Image.fromarray(binary.astype("uint8"))
