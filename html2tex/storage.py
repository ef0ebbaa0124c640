"""Images whose download was put off until after conversion."""
import logging
import typing as t

import attr


@attr.s(slots=True, frozen=True)
class DeferredImage:
    """An image source, and the file name already written into the LaTeX."""

    src: str = attr.ib()
    filename: str = attr.ib()
    sequence_number: int = attr.ib(default=0)


class ImageStorage:
    """Ordered list of deferred images; inert unless lazy downloading is on."""

    def __init__(self, lazy_downloading: bool = False) -> None:
        self.lazy_downloading = lazy_downloading
        self._images: list[DeferredImage] = []

    def enable(self, lazy_downloading: bool = True) -> None:
        self.lazy_downloading = lazy_downloading

    def add(self, src: str, filename: str, sequence_number: int = 0) -> bool:
        """Remember an image; False (and nothing kept) when not lazy."""
        if not self.lazy_downloading:
            return False
        self._images.append(DeferredImage(src, filename, sequence_number))
        logging.debug("Deferred #%d: %s -> %s", sequence_number, src[:60], filename)
        return True

    def clear(self) -> int:
        """Forget everything; returns how many were dropped."""
        count = len(self._images)
        self._images.clear()
        return count

    def drain(self) -> list[DeferredImage]:
        """Take everything out."""
        images, self._images = self._images, []
        return images

    def copy(self) -> "ImageStorage":
        other = ImageStorage(self.lazy_downloading)
        other._images = list(self._images)
        return other

    def __iter__(self) -> t.Iterator[DeferredImage]:
        return iter(self._images)

    def __len__(self) -> int:
        return len(self._images)

    def __bool__(self) -> bool:
        return bool(self._images)
