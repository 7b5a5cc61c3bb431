import os

# Run pygame headless: no window, no sound card
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import random

import pygame
import pytest


class FakeMusic():
    """Records play/stop calls instead of touching the mixer."""

    def __init__(self):
        self.calls = []
        self.playing = False

    def play(self):
        self.calls.append("play")
        self.playing = True

    def stop(self):
        self.calls.append("stop")
        self.playing = False


class FakeAssets():
    def __init__(self):
        self.play_button_img = pygame.Surface((250, 100))
        self.play_button_img.fill((0, 200, 0))
        self.game_over_img = pygame.Surface((800, 600))
        self.game_over_img.fill((200, 0, 0))


@pytest.fixture
def music():
    return FakeMusic()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def assets():
    return FakeAssets()
