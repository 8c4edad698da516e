"""Exceptions raised by the Julia set renderer."""


class JuliaError(Exception):
    """Base class for renderer failures."""


class BufferAllocationError(JuliaError, MemoryError):
    """The output buffer could not be allocated."""

    def __init__(self, nbytes: int):
        super().__init__(f"Out of memory allocating a {nbytes}-byte render buffer.")
        self.nbytes = nbytes


class EncoderError(JuliaError, OSError):
    """The image file could not be written."""
