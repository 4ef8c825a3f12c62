import json

from conftest import solid, with_pixels
from diffmap.cli import batch_diff, diff_images
from diffmap.services.image_service import ImageService

image_service = ImageService()


def write_images(tmp_path, changed=True):
    before = solid(4, 4)
    after = with_pixels(before, [(1, 1)]) if changed else before
    return [
        str(image_service.save(before, tmp_path / "before.png")),
        str(image_service.save(after, tmp_path / "after.png")),
    ]


def test_different_images_exit_with_one(tmp_path, capsys):
    out = tmp_path / "groups.png"
    code = diff_images.main(write_images(tmp_path) + ["--output", f"groups={out}"])
    summary = json.loads(capsys.readouterr().out)
    assert code == 1
    assert summary["status"] == "different"
    assert summary["outputs"] == ["groups"]
    assert out.is_file()


def test_identical_images_exit_with_zero(tmp_path, capsys):
    code = diff_images.main(write_images(tmp_path, changed=False))
    assert code == 0
    assert json.loads(capsys.readouterr().out)["status"] == "identical"


def test_all_statuses_renders_identical_images(tmp_path, capsys):
    out = tmp_path / "sim.png"
    code = diff_images.main(
        write_images(tmp_path, changed=False) + ["--output", f"flagsSimilarity={out}", "--all-statuses"]
    )
    assert code == 0
    assert out.is_file()


def test_options_and_inspect(tmp_path, capsys):
    code = diff_images.main(
        write_images(tmp_path) + ["--option", "group_padding_size=0", "--inspect", "1,1"]
    )
    summary = json.loads(capsys.readouterr().out)
    assert code == 1
    assert summary["regions"] == [{"left": 1, "top": 1, "right": 1, "bottom": 1}]
    assert summary["inspect"]["similarity"] == "changed"
    assert summary["inspect"]["significance"] == "foreground"
    assert summary["inspect"]["different"] is True


def test_errors_exit_with_two(tmp_path, capsys):
    images = write_images(tmp_path)
    assert diff_images.main([images[0], str(tmp_path / "missing.png")]) == 2
    assert diff_images.main(images + ["--option", "group_padding_size=lots"]) == 2
    assert diff_images.main(images + ["--output", "groups"]) == 2
    assert diff_images.main(images + ["--output", f"nosuch={tmp_path / 'x.png'}"]) == 2
    assert diff_images.main(images[:1]) == 2
    assert capsys.readouterr().out == ""


def test_batch_prints_a_status_table(tmp_path, capsys):
    before_dir, after_dir = tmp_path / "before", tmp_path / "after"
    black = solid(4, 4)
    image_service.save(black, before_dir / "page.png")
    image_service.save(with_pixels(black, [(0, 0)]), after_dir / "page.png")

    code = batch_diff.main([str(before_dir), str(after_dir), str(tmp_path / "out")])
    lines = capsys.readouterr().out.splitlines()
    assert code == 0
    assert lines[0].split() == ["name", "status", "diff", "%", "regions"]
    assert lines[1].split()[:2] == ["page.png", "different"]
    assert (tmp_path / "out" / "page-groups.png").is_file()


def test_batch_missing_directory(tmp_path):
    assert batch_diff.main([str(tmp_path / "a"), str(tmp_path / "b"), str(tmp_path / "out")]) == 2


def test_inspect_reuses_the_loaded_images(tmp_path, capsys, monkeypatch):
    loaded = []
    original_load = ImageService.load

    def counting_load(self, path):
        loaded.append(str(path))
        return original_load(self, path)

    monkeypatch.setattr(ImageService, "load", counting_load)
    images = write_images(tmp_path)
    assert diff_images.main(images + ["--inspect", "1,1"]) == 1
    assert sorted(loaded) == sorted(images)
