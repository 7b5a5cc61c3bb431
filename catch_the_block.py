#!/usr/bin/env python3
#
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
import argparse
import os
import pygame
import random
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from catch_assets import AssetError, Assets

SCREEN_WIDTH = 800
SCREEN_HEIGHT = 600
PADDLE_WIDTH = 100
PADDLE_HEIGHT = 20
BLOCK_SIZE = 30
PADDLE_SPEED = 10
BLOCK_SPEED = 5
MAX_MISTAKES = 5
FPS = 60

# The play button is centred in the window
BUTTON_WIDTH, BUTTON_HEIGHT = 250, 100
PLAY_BUTTON_RECT = pygame.Rect(
    (SCREEN_WIDTH - BUTTON_WIDTH) // 2,
    (SCREEN_HEIGHT - BUTTON_HEIGHT) // 2,
    BUTTON_WIDTH,
    BUTTON_HEIGHT,
)


class GameState(Enum):
    MENU = "menu"
    PLAYING = "playing"
    GAME_OVER = "game_over"


def intersects(a: pygame.Rect, b: pygame.Rect) -> bool:
    """
    Axis-aligned overlap test between two rectangles.

    Rectangles that only share an edge do not overlap, so this is
    `x1 < x2 + w2 and x2 < x1 + w1 and y1 < y2 + h2 and y2 < y1 + h1`.
    """

    return a.colliderect(b)


class Paddle():
    def __init__(self, screen_width: int = SCREEN_WIDTH, screen_height: int = SCREEN_HEIGHT) -> None:
        """
        Create the paddle horizontally centred, just above the bottom of the screen.

        Args:
            screen_width: Width of the playing area in pixels.
            screen_height: Height of the playing area in pixels.
        """

        self.screen_width = screen_width
        x = (screen_width - PADDLE_WIDTH) // 2
        y = screen_height - PADDLE_HEIGHT - 10
        self.rect = pygame.Rect(x, y, PADDLE_WIDTH, PADDLE_HEIGHT)

    def move_to(self, x: int) -> None:
        """Centre the paddle on a pointer x position."""

        self.rect.x = x - (self.rect.width // 2)

    def nudge(self, dx: int) -> None:
        self.rect.x += dx

    def clamp(self) -> None:
        """Keep the paddle inside [0, screen_width - width]."""

        self.rect.x = max(0, min(self.screen_width - self.rect.width, self.rect.x))


class Block():
    def __init__(self, rng: random.Random, screen_width: int = SCREEN_WIDTH) -> None:
        """
        Create the falling block at the top of the screen.

        Args:
            rng: Random source used for every respawn position.
            screen_width: Width of the playing area in pixels.
        """

        self.rng = rng
        self.screen_width = screen_width
        self.rect = pygame.Rect(0, 0, BLOCK_SIZE, BLOCK_SIZE)
        self.respawn()

    def fall(self) -> None:
        self.rect.y += BLOCK_SPEED

    def respawn(self) -> None:
        """Move the block back to the top, at a random x in [0, screen_width - size)."""

        self.rect.x = self.rng.randrange(self.screen_width - self.rect.width)
        self.rect.y = 0


# Input events, in the order they were queued during a frame

@dataclass(frozen=True)
class Quit():
    pass


@dataclass(frozen=True)
class PointerDown():
    x: int
    y: int


@dataclass(frozen=True)
class PointerMotion():
    x: int
    y: int


InputEvent = Union[Quit, PointerDown, PointerMotion]


@dataclass
class FrameInput():
    """Everything the game needs to know about the player's input for a single frame."""

    events: list[InputEvent] = field(default_factory=list)
    left: bool = False
    right: bool = False


class PygameInput():
    """Input source that drains the pygame event queue once per frame."""

    @staticmethod
    def translate(events: Iterable[pygame.event.Event], keys: Any) -> FrameInput:
        """
        Convert raw pygame events and keyboard state into a `FrameInput`.

        Args:
            events: pygame events in queue order.
            keys: Held-key state, indexable by pygame key constants (as returned by `pygame.key.get_pressed()`).

        Returns:
            FrameInput: Window close and Escape both become `Quit`; mouse button presses (not the wheel) become `PointerDown`.
        """

        frame = FrameInput(left=bool(keys[pygame.K_LEFT]), right=bool(keys[pygame.K_RIGHT]))
        for event in events:
            if event.type == pygame.QUIT:
                frame.events.append(Quit())
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    frame.events.append(Quit())
            elif event.type == pygame.MOUSEBUTTONDOWN:
                if event.button in (1, 2, 3):
                    frame.events.append(PointerDown(*event.pos))
            elif event.type == pygame.MOUSEMOTION:
                frame.events.append(PointerMotion(*event.pos))

        return frame

    def poll(self) -> FrameInput:
        return PygameInput.translate(pygame.event.get(), pygame.key.get_pressed())


class Graphics():
    colours = {
        'background': (33, 33, 33),
        'paddle': (100, 180, 255),
        'block': (255, 220, 50),
    }

    def __init__(
        self,
        width: int = SCREEN_WIDTH,
        height: int = SCREEN_HEIGHT,
        surface: pygame.Surface | None = None,
    ) -> None:
        """
        Describe the drawing surface. The window itself is opened when the context is entered.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            surface: Draw into this surface instead of opening a window (off-screen rendering).
        """

        self.window_width, self.window_height = width, height
        self.screen = surface
        self._owns_display = False

    def __enter__(self) -> Graphics:
        if self.screen is None:
            print(f"Opening {self.window_width}x{self.window_height} window")
            self.screen = pygame.display.set_mode((self.window_width, self.window_height))
            pygame.display.set_caption("Catch the Block")
            self._owns_display = True
        return self

    def __exit__(self, *exc_info) -> None:
        if self._owns_display:
            pygame.display.quit()
            self._owns_display = False
            self.screen = None

    def clear(self, colour: tuple[int, int, int] | None = None) -> None:
        self.screen.fill(Graphics.colours['background'] if colour is None else colour)

    def fill_rect(self, rect: pygame.Rect, colour: tuple[int, int, int]) -> None:
        pygame.draw.rect(self.screen, colour, rect)

    def draw_texture(self, texture: pygame.Surface, rect: pygame.Rect | None = None) -> None:
        """
        Blit a texture into a rectangle.

        Args:
            texture: Surface to draw. It is scaled if its size differs from the rectangle.
            rect: Destination rectangle. None means the whole screen.
        """

        if rect is None:
            rect = self.screen.get_rect()
        if texture.get_size() != rect.size:
            texture = pygame.transform.scale(texture, rect.size)
        self.screen.blit(texture, rect.topleft)

    def present(self) -> None:
        if self._owns_display:
            pygame.display.flip()


class Game():
    # Modify file paths if running as a PyInstaller bundle
    base_path = sys._MEIPASS if hasattr(sys, '_MEIPASS') else os.path.abspath(".")

    def __init__(
        self,
        music: Any,
        rng: random.Random | None = None,
        screen_width: int = SCREEN_WIDTH,
        screen_height: int = SCREEN_HEIGHT,
    ) -> None:
        """
        Set up the paddle, the block and the counters, starting in the menu.

        Args:
            music: Object exposing `play()` and `stop()` for the looping music track.
            rng: Random source for block positions. Defaults to a freshly seeded `random.Random`.
            screen_width: Width of the playing area in pixels.
            screen_height: Height of the playing area in pixels.
        """

        self.music = music
        self.rng = rng if rng is not None else random.Random()
        self.screen_width = screen_width
        self.screen_height = screen_height

        self.state = GameState.MENU
        self.mistakes = 0
        self.catches = 0
        self.running = True
        self.paddle = Paddle(screen_width, screen_height)
        self.block = Block(self.rng, screen_width)

        self._updates: dict[GameState, Callable[[FrameInput], None]] = {
            GameState.MENU: self.update_menu,
            GameState.PLAYING: self.update_playing,
            GameState.GAME_OVER: self.update_game_over,
        }

    def step(self, frame: FrameInput) -> bool:
        """
        Advance the game by a single frame.

        Args:
            frame: Input gathered for this frame.

        Returns:
            bool: False if the player asked to quit, otherwise True.

        Behaviour:
            - Events are handled in queue order, so a click that starts the game makes later motion events in the
              same frame move the paddle.
            - `Quit` stops immediately, without running the rest of the frame.
            - The update function for whichever state the game is in after the events then runs.
        """

        for event in frame.events:
            if isinstance(event, Quit):
                self.running = False
                return False

            elif isinstance(event, PointerDown):
                if self.state == GameState.MENU and PLAY_BUTTON_RECT.collidepoint(event.x, event.y):
                    self.start()

            elif isinstance(event, PointerMotion):
                if self.state == GameState.PLAYING:
                    self.paddle.move_to(event.x)

        self._updates[self.state](frame)
        return True

    def start(self) -> None:
        """Menu -> Playing. The music starts looping."""

        self.state = GameState.PLAYING
        self.music.play()

    def finish(self) -> None:
        """Playing -> GameOver. The music stops."""

        print("GAME OVER!")
        self.state = GameState.GAME_OVER
        self.music.stop()

    def update_menu(self, frame: FrameInput) -> None:
        # Nothing moves until the play button is clicked
        pass

    def update_playing(self, frame: FrameInput) -> None:
        """
        Run the physics for one frame of play.

        Behaviour:
            - Keyboard movement is added after any pointer positioning from this frame's events.
            - The paddle is clamped to the screen, then the block falls.
            - A block touching the paddle is caught and respawns at the top.
            - A block that falls past the bottom counts as a mistake and respawns; reaching `MAX_MISTAKES` ends the game.
        """

        if frame.left:
            self.paddle.nudge(-PADDLE_SPEED)
        if frame.right:
            self.paddle.nudge(PADDLE_SPEED)
        self.paddle.clamp()

        self.block.fall()

        if intersects(self.paddle.rect, self.block.rect):
            self.catches += 1
            print("Caught it!")
            self.block.respawn()

        if self.block.rect.y > self.screen_height:
            self.mistakes += 1
            print(f"Missed! Mistakes: {self.mistakes}")
            self.block.respawn()

            if self.mistakes >= MAX_MISTAKES:
                self.finish()

    def update_game_over(self, frame: FrameInput) -> None:
        # The game over screen stays up until the player quits
        pass


def draw_menu(gfx: Graphics, game: Game, assets: Any) -> None:
    gfx.draw_texture(assets.play_button_img, PLAY_BUTTON_RECT)


def draw_playing(gfx: Graphics, game: Game, assets: Any) -> None:
    gfx.fill_rect(game.paddle.rect, Graphics.colours['paddle'])
    gfx.fill_rect(game.block.rect, Graphics.colours['block'])


def draw_game_over(gfx: Graphics, game: Game, assets: Any) -> None:
    gfx.draw_texture(assets.game_over_img)


renderers = {
    GameState.MENU: draw_menu,
    GameState.PLAYING: draw_playing,
    GameState.GAME_OVER: draw_game_over,
}


def render(gfx: Graphics, game: Game, assets: Any) -> None:
    """
    Draw a complete frame for the current game state.

    Args:
        gfx: Graphics context to draw into.
        game: Game whose state is drawn. Rendering never modifies it.
        assets: Object providing `play_button_img` and `game_over_img`.
    """

    gfx.clear()
    renderers[game.state](gfx, game, assets)
    gfx.present()


def game_loop(game: Game, gfx: Graphics, assets: Any, source: Any, clock: Optional[Any] = None) -> None:
    """
    Run frames until the player quits.

    Args:
        game: Game to drive.
        gfx: Graphics context to draw into.
        assets: Loaded textures.
        source: Input source exposing `poll() -> FrameInput`.
        clock: Frame limiter exposing `tick(fps)`. Defaults to a `pygame.time.Clock`.
    """

    if clock is None:
        clock = pygame.time.Clock()

    while game.running:
        if not game.step(source.poll()):
            # Quit requested, so this frame is never drawn
            break

        render(gfx, game, assets)

        # Cap the frame rate to 60 frames per second
        clock.tick(FPS)

    print(f"Blocks caught: {game.catches}, mistakes: {game.mistakes}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Catch the Block. Move the paddle with the mouse or the arrow keys to catch the falling blocks. "
                    f"The game ends after {MAX_MISTAKES} misses. Press Escape to quit."
    )
    parser.parse_args(argv)

    # Initialise pygame, with the mixer set up for 44.1kHz stereo
    pygame.mixer.pre_init(44100, -16, 2, 2048)
    pygame.init()

    print(f"Loading assets from {Game.base_path}")
    try:
        with Graphics() as gfx, Assets(
            Game.base_path,
            button_size=PLAY_BUTTON_RECT.size,
            screen_size=(gfx.window_width, gfx.window_height),
        ) as assets:
            game = Game(music=assets.music)
            game_loop(game, gfx, assets, PygameInput())
    except AssetError as e:
        print(f"Error loading assets: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception:
        # Print the full traceback like the default handler
        traceback.print_exc()
        return 1
    finally:
        pygame.quit()

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
