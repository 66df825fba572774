import pytest

from folio.config import (
    SECTIONS,
    ConfigError,
    Section,
    SectionConfig,
    load_config,
    validate_sections,
)


def test_every_section_configured():
    validate_sections(SECTIONS)
    assert {s.value for s in SECTIONS} == {"posts", "projects", "talks"}
    assert SECTIONS[Section.POSTS].title == "Blog Posts"


def test_validate_sections_rejects_incomplete_mapping():
    partial = {Section.POSTS: SECTIONS[Section.POSTS]}
    with pytest.raises(ConfigError, match="projects"):
        validate_sections(partial)


def test_load_config_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    site = load_config(tmp_path)
    assert site.output_dir == tmp_path / "dist"
    assert site.static_dir == tmp_path / "public"
    assert site.port == 3000
    assert site.ws_port == 3001
    assert site.github_user == ""
    assert site.github_token is None
    assert site.section_dir(Section.TALKS) == tmp_path / "talks"


def test_load_config_from_yaml(tmp_path, monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "env-token")
    (tmp_path / "folio.yaml").write_text(
        "name: Jane Doe\n"
        "url: https://jane.dev/\n"
        "port: 8000\n"
        "content_dir: content\n"
        "links:\n  github: janedoe\n  email: jane@example.com\n"
        "sections:\n  posts:\n    title: Writing\n    path: writing\n",
        encoding="utf-8",
    )
    site = load_config(tmp_path)
    assert site.name == "Jane Doe"
    assert site.url == "https://jane.dev"
    assert site.port == 8000
    assert site.ws_port == 8001
    assert site.github_user == "janedoe"
    assert site.github_token == "env-token"
    assert site.sections[Section.POSTS] == SectionConfig("posts", "Writing", "writing")
    assert site.section_dir(Section.POSTS) == tmp_path / "content" / "writing"
    assert site.sections[Section.TALKS] == SECTIONS[Section.TALKS]


def test_load_config_rejects_unknown_section(tmp_path):
    (tmp_path / "folio.yaml").write_text("sections:\n  essays:\n    title: Essays\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="essays"):
        load_config(tmp_path)


def test_load_config_rejects_bad_values(tmp_path):
    (tmp_path / "folio.yaml").write_text("port: not-a-number\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)

    (tmp_path / "folio.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)

    (tmp_path / "folio.yaml").write_text("name: [oops\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)
