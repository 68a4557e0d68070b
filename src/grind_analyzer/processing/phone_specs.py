"""Reference optics for common phone cameras.

Values are approximations used for scale estimation when a photo's EXIF data is
incomplete. The EXIF path (focal length + 35mm equivalent + distance) is
preferred whenever it is available.
"""

from dataclasses import dataclass
from enum import Enum


class AspectRatio(str, Enum):
    """Sensor aspect ratio."""

    FOUR_THREE = "4:3"
    THREE_TWO = "3:2"
    SIXTEEN_NINE = "16:9"


@dataclass(frozen=True)
class PhoneLensSpec:
    """A single camera module on a phone."""

    name: str
    focal_length_mm: float
    equivalent_35mm_focal_length_mm: float
    aspect_ratio: AspectRatio = AspectRatio.FOUR_THREE


@dataclass(frozen=True)
class PhoneModelSpec:
    """A phone model and its rear lenses."""

    brand: str
    model: str
    lenses: tuple[PhoneLensSpec, ...]
    year: int | None = None

    @property
    def label(self) -> str:
        return f"{self.brand} {self.model}"


def _lens(name: str, focal: float, equiv: float) -> PhoneLensSpec:
    return PhoneLensSpec(name, focal, equiv, AspectRatio.FOUR_THREE)


PHONE_SPECS: tuple[PhoneModelSpec, ...] = (
    PhoneModelSpec("Apple", "iPhone 11", (
        _lens("Ultra-Wide (0.5x)", 1.54, 13),
        _lens("Wide (1x)", 4.25, 26),
    ), 2019),
    PhoneModelSpec("Apple", "iPhone 12 / 12 Pro / 12 mini", (
        _lens("Ultra-Wide (0.5x)", 1.54, 13),
        _lens("Wide (1x)", 5.1, 26),
        _lens("Tele (2x/2.5x/3x)", 7.65, 52),
    ), 2020),
    PhoneModelSpec("Apple", "iPhone 13 / 13 Pro", (
        _lens("Ultra-Wide (0.5x)", 1.57, 13),
        _lens("Wide (1x)", 5.7, 26),
        _lens("Tele (3x)", 9.0, 77),
    ), 2021),
    PhoneModelSpec("Apple", "iPhone 14 / 14 Pro", (
        _lens("Ultra-Wide (0.5x)", 1.57, 13),
        _lens("Wide (1x)", 6.86, 24),
        _lens("Tele (3x)", 9.0, 77),
    ), 2022),
    PhoneModelSpec("Apple", "iPhone 15 / 15 Pro", (
        _lens("Ultra-Wide (0.5x)", 1.57, 13),
        _lens("Wide (1x)", 6.86, 24),
        _lens("Tele (3x/5x)", 9.0, 77),
    ), 2023),
    PhoneModelSpec("Google", "Pixel 6 / 6 Pro", (
        _lens("Ultra-Wide (0.7x)", 1.95, 16),
        _lens("Wide (1x)", 6.81, 25),
        _lens("Tele (4x)", 19.0, 104),
    ), 2021),
    PhoneModelSpec("Google", "Pixel 7 / 7 Pro", (
        _lens("Ultra-Wide (0.7x)", 1.95, 16),
        _lens("Wide (1x)", 6.81, 24),
        _lens("Tele (5x)", 26.0, 120),
    ), 2022),
    PhoneModelSpec("Google", "Pixel 8 / 8 Pro", (
        _lens("Ultra-Wide (0.5-0.7x)", 2.0, 14),
        _lens("Wide (1x)", 6.5, 24),
        _lens("Tele (5x)", 26.0, 120),
    ), 2023),
    PhoneModelSpec("Samsung", "Galaxy S21 / S21 Ultra", (
        _lens("Ultra-Wide (0.6x)", 1.8, 13),
        _lens("Wide (1x)", 5.4, 24),
        _lens("Tele (3x/10x)", 10.0, 70),
    ), 2021),
    PhoneModelSpec("Samsung", "Galaxy S22 / S22 Ultra", (
        _lens("Ultra-Wide (0.6x)", 1.8, 13),
        _lens("Wide (1x)", 5.4, 24),
        _lens("Tele (3x/10x)", 10.0, 70),
    ), 2022),
    PhoneModelSpec("Samsung", "Galaxy S23 / S23 Ultra", (
        _lens("Ultra-Wide (0.6x)", 1.8, 13),
        _lens("Wide (1x)", 5.4, 24),
        _lens("Tele (3x/10x)", 10.0, 70),
    ), 2023),
    PhoneModelSpec("Samsung", "Galaxy S24 / S24 Ultra", (
        _lens("Ultra-Wide (0.6x)", 1.8, 13),
        _lens("Wide (1x)", 5.4, 24),
        _lens("Tele (3x/5-10x)", 9.0, 70),
    ), 2024),
)


def list_brands(specs: tuple[PhoneModelSpec, ...] = PHONE_SPECS) -> list[str]:
    """Sorted unique brand names."""
    return sorted({spec.brand for spec in specs})


def list_models(brand: str, specs: tuple[PhoneModelSpec, ...] = PHONE_SPECS) -> list[PhoneModelSpec]:
    """Models of the given brand, in table order."""
    return [spec for spec in specs if spec.brand == brand]


def find_lens(
    brand: str,
    model: str,
    lens_name: str | None = None,
    specs: tuple[PhoneModelSpec, ...] = PHONE_SPECS,
) -> tuple[PhoneModelSpec, PhoneLensSpec] | None:
    """
    Look up a phone and one of its lenses.

    Without a lens name the main "Wide (1x)" camera is chosen, falling back to the
    first listed lens.
    """
    for spec in list_models(brand, specs):
        if spec.model != model:
            continue
        if lens_name is not None:
            for lens in spec.lenses:
                if lens.name == lens_name:
                    return spec, lens
            return None
        main = next((lens for lens in spec.lenses if lens.name.startswith("Wide")), None)
        return spec, main or spec.lenses[0]
    return None
