from PIL import Image

from wallpaper_span_tool.image_io import get_image_size, load_handle, open_image


def test_load_handle_decodes_to_rgba(tmp_path):
    path = tmp_path / "wall.png"
    Image.new("RGB", (64, 32), (10, 20, 30)).save(path)

    with load_handle(path) as handle:
        assert handle.path == path
        assert handle.size == (64, 32)
        assert handle.image.mode == "RGBA"
        assert handle.image.getpixel((0, 0)) == (10, 20, 30, 255)
    assert handle.closed


def test_close_is_idempotent(tmp_path):
    path = tmp_path / "wall.png"
    Image.new("RGB", (8, 8)).save(path)
    handle = load_handle(path)
    handle.close()
    handle.close()
    assert handle.closed


def test_get_image_size_and_open(tmp_path):
    path = tmp_path / "wall.jpg"
    Image.new("RGB", (300, 200), (200, 0, 0)).save(path)
    assert get_image_size(path) == (300, 200)
    with open_image(path) as img:
        assert img.size == (300, 200)
