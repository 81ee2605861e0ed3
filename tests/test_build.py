import logging
import shutil
import threading
import time
from pathlib import Path

import pytest

from strata.build import Builder, BuildResult, PageRenderer, build_site
from strata.config import BuildConfig, Config, load_config
from strata.content import ContentExtractor
from strata.context import freeze_context
from strata.errors import (
    BuildError,
    ConfigError,
    FrontMatterError,
    MarkdownRenderError,
    TemplateNotFoundError,
    TemplateRenderError,
)
from strata.templates import TemplateRegistry


class FakeRasterizer:
    def render(self, emoji, fp):
        fp.write(b"\x89PNG" + emoji.encode("utf-8"))


def create_project(tmp_path: Path) -> Path:
    project = tmp_path / "site"
    (project / "layouts" / "blog").mkdir(parents=True)
    (project / "static" / "css").mkdir(parents=True)
    (project / "blog").mkdir()

    (project / "strata.yaml").write_text(
        "title: Test Site\n"
        "description: A test\n"
        "base_url: https://example.com\n"
        "author: Site Author\n"
        "build:\n"
        "  ignore_files: [README.md]\n",
        encoding="utf-8",
    )
    (project / "layouts" / "default.html").write_text(
        "<title>{{ title }}</title><main>{{ contents }}</main><i>{{ post_slug }}</i>",
        encoding="utf-8",
    )
    (project / "layouts" / "blog" / "default.html").write_text(
        "<article data-author=\"{{ author }}\">{{ contents }}</article>",
        encoding="utf-8",
    )
    (project / "static" / "css" / "main.css").write_text("body{}", encoding="utf-8")
    (project / "static" / "robots.txt").write_text("User-agent: *", encoding="utf-8")

    (project / "index.md").write_text("# Home\n\nWelcome!", encoding="utf-8")
    (project / "README.md").write_text("# Not a page", encoding="utf-8")
    (project / "blog" / "hello.md").write_text(
        "---\ntitle: Hello Post\nauthor: Jane\n---\n# Hello\n\nFirst post.",
        encoding="utf-8",
    )
    return project


def test_build_site_renders_pages_and_copies_static(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project)

    assert isinstance(result, BuildResult)
    assert result.output_dir == project / "dist"
    assert result.pages == [Path("blog/hello.html"), Path("index.html")]
    assert result.static_files == 2

    dist = project / "dist"
    assert (dist / "css" / "main.css").read_text(encoding="utf-8") == "body{}"
    assert (dist / "robots.txt").exists()
    assert not (dist / "README.html").exists()

    index = (dist / "index.html").read_text(encoding="utf-8")
    assert "<title>Test Site</title>" in index
    assert "<h1>Home</h1>" in index
    assert "<i>index</i>" in index

    post = (dist / "blog" / "hello.html").read_text(encoding="utf-8")
    assert post.startswith('<article data-author="Jane">')
    assert "<p>First post.</p>" in post


def test_exact_layout_beats_directory_default(tmp_path):
    project = create_project(tmp_path)
    (project / "layouts" / "blog" / "hello.html").write_text(
        "exact:{{ title }}", encoding="utf-8"
    )
    build_site(project)
    post = (project / "dist" / "blog" / "hello.html").read_text(encoding="utf-8")
    assert post == "exact:Hello Post"


def test_build_is_idempotent(tmp_path):
    project = create_project(tmp_path)
    (project / "blog" / "emoji.md").write_text(
        "---\nemoji: \"🎉\"\n---\nParty", encoding="utf-8"
    )

    def snapshot():
        dist = project / "dist"
        return {
            p.relative_to(dist).as_posix(): p.read_bytes()
            for p in sorted(dist.rglob("*"))
            if p.is_file()
        }

    config = load_config(project)
    Builder(config, project, rasterizer=FakeRasterizer()).run()
    first = snapshot()
    Builder(config, project, rasterizer=FakeRasterizer()).run()
    assert snapshot() == first
    assert "blog/emoji.png" in first


def test_og_image_written_and_linked(tmp_path):
    project = create_project(tmp_path)
    (project / "layouts" / "blog" / "party.html").write_text(
        '<meta property="og:image" content="{{ base_url }}/{{ og_image }}">',
        encoding="utf-8",
    )
    (project / "blog" / "party.md").write_text(
        "---\nemoji: \"🎉\"\n---\nParty", encoding="utf-8"
    )
    build_site(project)

    image = project / "dist" / "blog" / "party.png"
    assert image.read_bytes().startswith(b"\x89PNG")
    page = (project / "dist" / "blog" / "party.html").read_text(encoding="utf-8")
    assert 'content="https://example.com/blog/party.png"' in page


def test_missing_static_dir_is_skipped(tmp_path, caplog):
    project = create_project(tmp_path)
    shutil.rmtree(project / "static")

    caplog.set_level(logging.INFO, logger="strata")
    result = build_site(project)

    assert result.static_files == 0
    assert (project / "dist" / "index.html").exists()
    assert "static directory not found" in caplog.text


def test_build_logs_phases(tmp_path, caplog):
    project = create_project(tmp_path)
    caplog.set_level(logging.INFO, logger="strata")
    build_site(project)
    assert "creating dist directory" in caplog.text
    assert "copying static files" in caplog.text
    assert "found 2 markdown files" in caplog.text
    assert "rendering blog/hello.md" in caplog.text.replace("\\", "/")


def test_failed_build_removes_previous_output(tmp_path):
    project = create_project(tmp_path)
    build_site(project)
    stale = project / "dist" / "stale.txt"
    stale.write_text("old", encoding="utf-8")

    (project / "blog" / "broken.md").write_text(
        "---\ntitle: [unclosed\n---\nBody", encoding="utf-8"
    )
    with pytest.raises(FrontMatterError) as excinfo:
        build_site(project)

    assert excinfo.value.source_path == Path("blog/broken.md")
    # The dist tree was recreated before rendering; a failed build leaves it
    # incomplete rather than restoring the previous one.
    assert (project / "dist").is_dir()
    assert not stale.exists()
    assert (project / "dist" / "css" / "main.css").exists()


def test_any_failing_page_fails_the_build(tmp_path):
    project = create_project(tmp_path)
    for i in range(5):
        (project / "blog" / f"bad{i}.md").write_text(
            "---\n- not\n- a mapping\n---\n", encoding="utf-8"
        )
    with pytest.raises(BuildError) as excinfo:
        build_site(project)
    # Which page is reported depends on scheduling.
    assert excinfo.value.source_path.name.startswith("bad")


def test_missing_template_fails_build(tmp_path):
    project = create_project(tmp_path)
    (project / "layouts" / "default.html").unlink()
    with pytest.raises(TemplateNotFoundError) as excinfo:
        build_site(project)
    assert excinfo.value.source_path == Path("index.html")


def test_template_runtime_error_is_wrapped(tmp_path):
    project = create_project(tmp_path)
    (project / "layouts" / "default.html").write_text(
        "{{ missing.attr }}",
        encoding="utf-8",
    )
    (project / "blog" / "hello.md").unlink()
    with pytest.raises(TemplateRenderError) as excinfo:
        build_site(project)
    assert excinfo.value.source_path == Path("index.md")


def test_converter_failure_cancels_queued_pages(tmp_path):
    project = create_project(tmp_path)
    (project / "blog" / "hello.md").unlink()
    (project / "index.md").unlink()
    (project / "README.md").unlink()
    (project / "aaa.md").write_text("fail here", encoding="utf-8")
    for i in range(20):
        (project / f"page{i:02d}.md").write_text(f"page {i}", encoding="utf-8")

    calls = []
    lock = threading.Lock()

    class SlowConverter:
        def convert(self, text):
            with lock:
                calls.append(text)
            if text == "fail here":
                raise RuntimeError("boom")
            time.sleep(0.05)
            return f"<p>{text}</p>"

    config = Config(build=BuildConfig(workers=1))
    builder = Builder(config, project, converter=SlowConverter())
    with pytest.raises(MarkdownRenderError) as excinfo:
        builder.run()

    assert excinfo.value.source_path == Path("aaa.md")
    assert "boom" in excinfo.value.message
    assert len(calls) < 21


def test_workers_override_and_validation(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project, workers=2)
    assert len(result.pages) == 2
    with pytest.raises(ConfigError):
        build_site(project, workers=0)


def test_base_url_override(tmp_path):
    project = create_project(tmp_path)
    (project / "layouts" / "default.html").write_text(
        "{{ base_url }}", encoding="utf-8"
    )
    build_site(project, base_url="http://localhost:4000")
    assert (project / "dist" / "index.html").read_text(encoding="utf-8") == (
        "http://localhost:4000"
    )


def test_reload_config_picks_up_changes(tmp_path):
    project = create_project(tmp_path)
    builder = Builder(load_config(project), project)
    (project / "strata.yaml").write_text("title: Changed\n", encoding="utf-8")
    builder.reload_config()
    assert builder.config.title == "Changed"


def test_page_renderer_writes_nested_output(tmp_path):
    project = create_project(tmp_path)
    (project / "docs" / "deep").mkdir(parents=True)
    (project / "docs" / "deep" / "page.md").write_text("Deep", encoding="utf-8")
    dist = tmp_path / "out"
    registry = TemplateRegistry.load(project / "layouts")

    class Converter:
        def convert(self, text):
            return f"<p>{text}</p>"

    extractor = ContentExtractor(project, dist, Converter(), FakeRasterizer())
    renderer = PageRenderer(registry, freeze_context({"title": "T"}), extractor, dist)

    written = renderer.render(Path("docs/deep/page.md"))

    assert written == Path("docs/deep/page.html")
    html = (dist / "docs" / "deep" / "page.html").read_text(encoding="utf-8")
    assert html == "<title>T</title><main><p>Deep</p></main><i>docs/deep/page</i>"


def test_bare_extension_file_name_becomes_html(tmp_path):
    project = create_project(tmp_path)
    (project / "blog" / "hello.md").unlink()
    (project / "index.md").unlink()
    (project / "sub").mkdir()
    (project / "sub" / ".md").write_text("Bare", encoding="utf-8")

    result = build_site(project)

    assert result.pages == [Path("sub/.html")]
    html = (project / "dist" / "sub" / ".html").read_text(encoding="utf-8")
    assert "<i>sub</i>" in html
    assert not (project / "dist" / "sub" / ".md").exists()
