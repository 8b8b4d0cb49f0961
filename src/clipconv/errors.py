from __future__ import annotations


class DownloadError(RuntimeError):
    pass


class ProbeError(RuntimeError):
    pass


class ConversionError(RuntimeError):
    pass
