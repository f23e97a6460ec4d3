from .path_classifier import is_eligible_video, asset_key, extension_of, parent_of
from .file_system import AsyncFileSystem
from .media_probe import MediaProbe
