import cv2
import numpy as np
import pygame
import pytest

import catch_assets
from catch_assets import AssetError, Assets, Music, load_backdrop, load_texture


class FakeMixerMusic():
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def load(self, path):
        self.calls.append(("load", path))
        if self.fail:
            raise pygame.error("Unrecognized audio format")

    def unload(self):
        self.calls.append(("unload",))

    def play(self, loops=0):
        self.calls.append(("play", loops))

    def stop(self):
        self.calls.append(("stop",))


@pytest.fixture
def mixer(monkeypatch):
    fake = FakeMixerMusic()
    monkeypatch.setattr(catch_assets.pygame.mixer, "music", fake)
    return fake


def write_image(path, width, height, bgr):
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :] = bgr
    assert cv2.imwrite(str(path), image)
    return path


@pytest.fixture
def asset_dir(tmp_path):
    write_image(tmp_path / "play_button.png", 50, 20, (0, 255, 0))
    write_image(tmp_path / "game_over.png", 160, 120, (255, 0, 0))
    (tmp_path / "background_music.mp3").write_bytes(b"not really music")
    return tmp_path


def test_load_texture_scales(asset_dir):
    texture = load_texture(str(asset_dir / "play_button.png"), (250, 100))
    assert texture.get_size() == (250, 100)
    assert tuple(texture.get_at((125, 50)))[:3] == (0, 255, 0)


def test_load_texture_missing(tmp_path):
    with pytest.raises(AssetError, match="missing.png"):
        load_texture(str(tmp_path / "missing.png"), (10, 10))


def test_load_backdrop_fills_screen_and_converts_colour(asset_dir):
    backdrop = load_backdrop(str(asset_dir / "game_over.png"), (800, 600))
    assert backdrop.get_size() == (800, 600)
    # Blue in OpenCV's BGR order stays blue once converted
    assert tuple(backdrop.get_at((400, 300)))[:3] == (0, 0, 255)


def test_load_backdrop_corrupt(tmp_path):
    path = tmp_path / "game_over.png"
    path.write_bytes(b"garbage")
    with pytest.raises(AssetError, match="game_over.png"):
        load_backdrop(str(path), (800, 600))


def test_music_play_stop(mixer):
    music = Music("track.mp3")
    music.load()
    music.play()
    music.stop()
    music.stop()
    music.unload()
    assert mixer.calls == [("load", "track.mp3"), ("play", -1), ("stop",), ("unload",)]


def test_music_load_failure(monkeypatch):
    monkeypatch.setattr(catch_assets.pygame.mixer, "music", FakeMixerMusic(fail=True))
    with pytest.raises(AssetError, match="track.mp3"):
        Music("track.mp3").load()


def test_assets_load_and_release(asset_dir, mixer):
    with Assets(str(asset_dir), button_size=(250, 100), screen_size=(800, 600)) as assets:
        assert assets.play_button_img.get_size() == (250, 100)
        assert assets.game_over_img.get_size() == (800, 600)
        assert assets.music.loaded
        assets.music.play()

    assert assets.play_button_img is None
    assert assets.game_over_img is None
    assert assets.music is None
    assert mixer.calls[-2:] == [("stop",), ("unload",)]


def test_assets_release_partial_on_failure(asset_dir, monkeypatch):
    mixer = FakeMixerMusic(fail=True)
    monkeypatch.setattr(catch_assets.pygame.mixer, "music", mixer)
    assets = Assets(str(asset_dir), button_size=(250, 100), screen_size=(800, 600))
    with pytest.raises(AssetError):
        with assets:
            pass
    assert assets.play_button_img is None
    assert assets.game_over_img is None
    assert assets.music is None
    assert ("unload",) not in mixer.calls


def test_assets_missing_game_over_image(asset_dir, mixer):
    (asset_dir / "game_over.png").unlink()
    assets = Assets(str(asset_dir), button_size=(250, 100), screen_size=(800, 600))
    with pytest.raises(AssetError, match="game_over.png"):
        with assets:
            pass
    assert assets.play_button_img is None
    assert mixer.calls == []


def test_library_module_is_not_a_script():
    with open(catch_assets.__file__) as source:
        first = source.readline()
    assert not first.startswith("#!")
    assert first.startswith("# Copyright")
