"""Application configuration: resource paths, network settings and file icons."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

_ICON_PATHS = (
    ":/ico/close.png",
    ":/ico/ikunlogo.png",
    ":/ico/qqlogo.png",
    ":/ico/set.png",
)

_CHAT_ICON_PATHS = (
    ":/chat_icons/BrowsingHistory.png",
    ":/chat_icons/Expression.png",
    ":/chat_icons/File.png",
    ":/chat_icons/More.png",
    ":/chat_icons/Picture.png",
    ":/chat_icons/RedEnvelope.png",
    ":/chat_icons/ScreenSharing.png",
    ":/chat_icons/Screenshots.png",
    ":/chat_icons/StartAGroupChat.png",
    ":/chat_icons/VideoCall.png",
    ":/chat_icons/Voice.png",
    ":/chat_icons/VoiceCall.png",
    ":/chat_icons/WindowShaking.png",
)

_AVATAR_COUNT = 30

# Checked in order; the first group whose extensions match wins.
_FILE_ICONS: tuple[tuple[frozenset[str], str], ...] = (
    (frozenset({"mp3", "wav", "flac", "aac"}), ":/file_icons/audio.png"),
    (frozenset({"mp4", "avi", "mov", "mkv"}), ":/file_icons/video.png"),
    (frozenset({"jpg", "jpeg", "png", "gif", "bmp", "webp"}), ":/file_icons/image.png"),
    (frozenset({"pdf"}), ":/file_icons/pdf.png"),
    (frozenset({"doc", "docx"}), ":/file_icons/word.png"),
    (frozenset({"xls", "xlsx", "csv"}), ":/file_icons/excel.png"),
    (frozenset({"ppt", "pptx"}), ":/file_icons/ppt.png"),
    (frozenset({"zip", "rar", "7z", "tar", "gz"}), ":/file_icons/compressedPackage.png"),
    (
        frozenset({"cpp", "h", "java", "py", "js", "html", "css", "xml", "json"}),
        ":/file_icons/code.png",
    ),
    (frozenset({"html", "htm", "php"}), ":/file_icons/web.png"),
    (frozenset({"txt", "md", "log", "ini"}), ":/file_icons/text.png"),
    (frozenset({"folder", "dir"}), ":/file_icons/folder.png"),
)
_UNKNOWN_ICON = ":/file_icons/unknown.png"


def _default_download_dir() -> str:
    return (Path.home() / "Downloads").as_posix()


@dataclass
class AppConfig:
    """Resource paths and network settings used across the application."""

    icon_paths: list[str] = field(default_factory=list)
    avatar_paths: list[str] = field(default_factory=list)
    chat_icon_paths: list[str] = field(default_factory=list)
    server_ip: str = "127.0.0.1"
    server_port: int = 8848
    download_path: str = field(default_factory=_default_download_dir)

    def icon_path_by_id(self, index: int) -> str:
        """Return the icon path at *index*, or ``""`` when out of range."""
        return self.icon_paths[index] if 0 <= index < len(self.icon_paths) else ""

    def avatar_path_by_id(self, index: int) -> str:
        """Return the avatar path at *index*, or ``""`` when out of range."""
        return self.avatar_paths[index] if 0 <= index < len(self.avatar_paths) else ""


def load_config() -> AppConfig:
    """Build the application's standard configuration."""
    return AppConfig(
        icon_paths=list(_ICON_PATHS),
        avatar_paths=[f":/avatar/P ({i}).jpg" for i in range(1, _AVATAR_COUNT + 1)],
        chat_icon_paths=list(_CHAT_ICON_PATHS),
    )


def _suffix(file_name: str) -> str:
    base = file_name.rsplit("/", 1)[-1]
    _, dot, ext = base.rpartition(".")
    return ext.lower() if dot else ""


def file_type_icon(file_name: str) -> str:
    """Return the icon resource path for a file, chosen by its extension.

    Anything after a ``|`` in *file_name* is ignored, so stored file-message
    contents of the form ``name|path|size`` may be passed directly.
    """
    ext = _suffix(file_name.split("|", 1)[0])
    for extensions, icon in _FILE_ICONS:
        if ext in extensions:
            return icon
    return _UNKNOWN_ICON


def default_avatar() -> str:
    """Return the placeholder avatar shown before one is chosen."""
    return ":/ico/SelectAvatar.png"