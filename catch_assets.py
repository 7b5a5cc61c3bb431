# Copyright (c) 2025, 7th software Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations
import cv2
import os
import pygame
import numpy as np
from contextlib import ExitStack


class AssetError(Exception):
    """Raised when an image or audio file cannot be loaded at startup."""


def load_texture(path: str, size: tuple[int, int]) -> pygame.Surface:
    """
    Load an image with pygame and scale it to an exact size.

    Args:
        path: Image file to load.
        size: (width, height) the texture will be drawn at.

    Returns:
        pygame.Surface: The scaled texture.

    Raises:
        AssetError: If the file is missing or cannot be decoded.
    """

    try:
        image = pygame.image.load(path)
    except (pygame.error, OSError) as e:
        raise AssetError(f"Unable to load image {path}: {e}") from e

    # Scaling happens once at load time, so quality matters more than speed. smoothscale only takes 24/32-bit images.
    if image.get_bitsize() in (24, 32):
        return pygame.transform.smoothscale(image, size)
    return pygame.transform.scale(image, size)


def load_backdrop(path: str, size: tuple[int, int]) -> pygame.Surface:
    """
    Load a full-screen image with OpenCV and convert it to a pygame surface.

    The backdrop is usually a large picture shrunk to the window, so it goes through OpenCV for its area-interpolated
    resize (`INTER_AREA`), which avoids the moire that `smoothscale` leaves on big downscales. Small sprites such as
    the play button use `load_texture` instead. Both loaders report failure the same way, as an `AssetError`.

    Args:
        path: Image file to load.
        size: (width, height) of the window the backdrop covers.

    Returns:
        pygame.Surface: An RGB surface exactly `size` pixels.

    Raises:
        AssetError: If OpenCV cannot read the file.
    """

    # `imread` doesn't raise on failure, it just hands back None
    image_cv = cv2.imread(path)
    if image_cv is None:
        raise AssetError(f"Unable to load image {path}")

    image_cv = cv2.resize(image_cv, size, interpolation=cv2.INTER_AREA)

    # Convert from BGR to RGB
    image_cv = cv2.cvtColor(image_cv, cv2.COLOR_BGR2RGB)

    # frombuffer shares memory with the array, so copy into a buffer the surface can own
    buffer = np.ascontiguousarray(image_cv, dtype=np.uint8).tobytes()
    return pygame.image.frombuffer(buffer, image_cv.shape[1::-1], "RGB").copy()


class Music():
    """A single looping music track played through `pygame.mixer.music`."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.loaded = False
        self.playing = False

    def load(self) -> None:
        """
        Load the track into the mixer.

        Raises:
            AssetError: If the mixer is unavailable or the file cannot be decoded.
        """

        try:
            pygame.mixer.music.load(self.path)
        except (pygame.error, OSError) as e:
            raise AssetError(f"Failed to load music {self.path}: {e}") from e
        self.loaded = True

    def unload(self) -> None:
        if self.loaded:
            self.stop()
            pygame.mixer.music.unload()
            self.loaded = False

    def play(self) -> None:
        """Start the track from the beginning, looping forever."""

        pygame.mixer.music.play(loops=-1)
        self.playing = True

    def stop(self) -> None:
        if self.playing:
            pygame.mixer.music.stop()
            self.playing = False


class Assets():
    """
    Scoped owner of every asset the game needs.

    Entering the context loads the play button, the game over backdrop and the music track. If any of them fails,
    whatever was already acquired is released before the `AssetError` propagates. Leaving the context releases
    everything.
    """

    def __init__(
        self,
        path: str,
        button_size: tuple[int, int],
        screen_size: tuple[int, int],
        button_file: str = "play_button.png",
        game_over_file: str = "game_over.png",
        music_file: str = "background_music.mp3",
    ) -> None:
        """
        Describe where the assets live; nothing is loaded until the context is entered.

        Args:
            path: Directory containing the asset files.
            button_size: Size the play button texture is scaled to.
            screen_size: Size of the window (the game over texture fills it).
            button_file: File name of the play button image.
            game_over_file: File name of the game over image.
            music_file: File name of the background music.
        """

        self.path = path
        self.button_size = button_size
        self.screen_size = screen_size
        self.button_file = button_file
        self.game_over_file = game_over_file
        self.music_file = music_file

        self.play_button_img = None
        self.game_over_img = None
        self.music = None
        self._stack = None

    def __enter__(self) -> Assets:
        with ExitStack() as stack:
            self.play_button_img = load_texture(os.path.join(self.path, self.button_file), self.button_size)
            stack.callback(self._release_textures)

            self.game_over_img = load_backdrop(os.path.join(self.path, self.game_over_file), self.screen_size)

            music = Music(os.path.join(self.path, self.music_file))
            music.load()
            self.music = music
            stack.callback(self._release_music)

            # Everything loaded, so keep the release callbacks for __exit__
            self._stack = stack.pop_all()

        return self

    def __exit__(self, *exc_info) -> None:
        if self._stack is not None:
            self._stack.close()
            self._stack = None

    def _release_textures(self) -> None:
        self.play_button_img = None
        self.game_over_img = None

    def _release_music(self) -> None:
        if self.music is not None:
            self.music.unload()
            self.music = None
