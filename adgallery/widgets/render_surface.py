"""Isolation contract for creative previews."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class SandboxPolicy:
    """Capabilities granted to a creative; top-level navigation is never implicit."""

    allow_scripts: bool = True
    allow_same_origin: bool = True
    allow_user_navigation: bool = False

    def sandbox_tokens(self) -> str:
        """The same grant expressed as an iframe `sandbox` attribute."""
        tokens = []
        if self.allow_scripts:
            tokens.append('allow-scripts')
        if self.allow_same_origin:
            tokens.append('allow-same-origin')
        if self.allow_user_navigation:
            tokens.append('allow-top-navigation-by-user-activation')
        return ' '.join(tokens)


class RenderSurface(ABC):
    """An isolated, script-capable display context owned by one preview."""

    def __init__(self, policy: SandboxPolicy | None = None):
        self.policy = policy or SandboxPolicy()
        self._load_callbacks: list[Callable[[bool], None]] = []
        self._destroyed = False

    @abstractmethod
    def mount(self, content: str, base_url: str):
        """Load `content` directly; relative references resolve against `base_url`."""

    @abstractmethod
    def set_size(self, width: int, height: int):
        pass

    def on_load(self, callback: Callable[[bool], None]):
        self._load_callbacks.append(callback)

    def _emit_load(self, ok: bool):
        if self._destroyed:
            return
        for callback in list(self._load_callbacks):
            callback(ok)

    def destroy(self):
        self._destroyed = True
        self._load_callbacks.clear()

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed
