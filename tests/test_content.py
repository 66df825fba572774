from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from folio.config import Section, SectionConfig, SiteConfig
from folio.content import (
    Post,
    PostBuilder,
    PostNotFoundError,
    RawPost,
    SectionScanner,
    UnknownSectionError,
    find_post,
    load_all_posts,
    load_section_posts,
)


def write_post(root: Path, section: str, slug: str, text: str) -> Path:
    folder = root / section / slug
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / "index.md"
    path.write_text(text, encoding="utf-8")
    return path


def make_site(tmp_path: Path) -> SiteConfig:
    return SiteConfig(root=tmp_path, content_dir=tmp_path)


def test_hello_world_post(tmp_path):
    write_post(
        tmp_path,
        "posts",
        "hello-world",
        '---\ntitle: "Hello"\ndate: "2024-01-01"\n---\n# Hi\n\nSome *text*.',
    )
    posts = load_section_posts(Section.POSTS, make_site(tmp_path))
    assert len(posts) == 1
    post = posts[0]
    assert post.slug == "hello-world"
    assert post.title == "Hello"
    assert post.date == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert post.section is Section.POSTS
    assert "<h1>Hi</h1>" in post.content
    assert "<em>text</em>" in post.content
    assert post.url == "/posts/hello-world"


def test_unquoted_yaml_date_and_spoiler(tmp_path):
    write_post(
        tmp_path,
        "talks",
        "conf",
        "---\ntitle: Conf talk\ndate: 2023-05-04\nspoiler: Short summary\n---\nBody",
    )
    post = load_section_posts("talks", make_site(tmp_path))[0]
    assert post.date == datetime(2023, 5, 4, tzinfo=timezone.utc)
    assert post.spoiler == "Short summary"
    assert post.section is Section.TALKS


def test_missing_title_and_date_use_defaults(tmp_path):
    write_post(tmp_path, "posts", "bare", "Just a body.")
    before = datetime.now(timezone.utc)
    post = load_section_posts(Section.POSTS, make_site(tmp_path))[0]
    assert post.title == "Untitled"
    assert post.spoiler is None
    assert abs(post.date - before) < timedelta(seconds=1)
    assert "<p>Just a body.</p>" in post.content


def test_unparsable_date_falls_back_to_now(tmp_path):
    write_post(tmp_path, "posts", "odd", "---\ntitle: Odd\ndate: someday\n---\nx")
    post = load_section_posts(Section.POSTS, make_site(tmp_path))[0]
    assert abs(post.date - datetime.now(timezone.utc)) < timedelta(seconds=1)


def test_impossible_calendar_date_keeps_post(tmp_path):
    write_post(tmp_path, "posts", "bad-date", '---\ntitle: "Bad"\ndate: 2024-02-30\nspoiler: Kept\n---\n\nBody')
    posts = load_section_posts(Section.POSTS, make_site(tmp_path))
    assert posts.slugs() == ["bad-date"]
    post = posts[0]
    assert post.title == "Bad"
    assert post.spoiler == "Kept"
    assert abs(post.date - datetime.now(timezone.utc)) < timedelta(seconds=1)
    assert "<p>Body</p>" in post.content


def test_posts_sorted_newest_first(tmp_path):
    for slug, day in [("a", "2022-03-01"), ("b", "2024-06-10"), ("c", "2023-01-15")]:
        write_post(tmp_path, "posts", slug, f"---\ntitle: {slug}\ndate: {day}\n---\n")
    posts = load_section_posts(Section.POSTS, make_site(tmp_path))
    assert [p.slug for p in posts] == ["b", "c", "a"]
    dates = [p.date for p in posts]
    assert all(dates[i] >= dates[i + 1] for i in range(len(dates) - 1))


def test_missing_section_directory_is_empty(tmp_path):
    site = make_site(tmp_path)
    assert list(load_section_posts(Section.PROJECTS, site)) == []
    assert SectionScanner(site).scan(Section.PROJECTS) == []


def test_scanner_skips_hidden_files_and_broken_posts(tmp_path):
    write_post(tmp_path, "posts", "good", "---\ntitle: Good\n---\nok")
    write_post(tmp_path, "posts", ".hidden", "---\ntitle: Hidden\n---\n")
    (tmp_path / "posts" / "notes.md").write_text("loose file", encoding="utf-8")
    (tmp_path / "posts" / "no-index").mkdir()
    bad = tmp_path / "posts" / "binary"
    bad.mkdir()
    (bad / "index.md").write_bytes(b"\xff\xfe\x00bad")

    site = make_site(tmp_path)
    raw = SectionScanner(site).scan(Section.POSTS)
    assert sorted(r.slug for r in raw) == ["binary", "good"]

    posts = load_section_posts(Section.POSTS, site)
    assert [p.slug for p in posts] == ["good"]


def test_scanner_logs_missing_section(tmp_path, caplog):
    with caplog.at_level("WARNING", logger="folio.content"):
        SectionScanner(make_site(tmp_path)).scan(Section.TALKS)
    assert "Cannot read section talks" in caplog.text


def test_unknown_section_name_rejected(tmp_path):
    with pytest.raises(UnknownSectionError):
        SectionScanner(make_site(tmp_path)).scan("essays")


def test_malformed_frontmatter_renders_best_effort(tmp_path):
    write_post(tmp_path, "posts", "broken", "---\ntitle: [unclosed\n---\n# Still here")
    post = load_section_posts(Section.POSTS, make_site(tmp_path))[0]
    assert post.title == "Untitled"
    assert "Still here" in post.content


def test_builder_decodes_bom(tmp_path):
    raw = RawPost(slug="bom", data="\ufeff---\ntitle: Bom\n---\nhi".encode("utf-8"))
    post = PostBuilder().build(Section.POSTS, raw)
    assert post.title == "Bom"


def test_load_all_posts_has_every_section(tmp_path):
    write_post(tmp_path, "talks", "t1", "---\ntitle: T1\ndate: 2024-01-01\n---\n")
    posts_by_section = load_all_posts(make_site(tmp_path))
    assert set(posts_by_section) == set(Section)
    assert len(posts_by_section[Section.TALKS]) == 1
    assert len(posts_by_section[Section.POSTS]) == 0


def test_custom_section_path(tmp_path):
    write_post(tmp_path, "writing", "essay", "---\ntitle: Essay\n---\n")
    site = make_site(tmp_path)
    site.sections[Section.POSTS] = SectionConfig(
        name="posts", title="Writing", path="writing"
    )
    posts = load_section_posts(Section.POSTS, site)
    assert [p.slug for p in posts] == ["essay"]


def test_find_post(tmp_path):
    write_post(tmp_path, "posts", "here", "---\ntitle: Here\n---\n")
    posts_by_section = load_all_posts(make_site(tmp_path))
    assert find_post(posts_by_section, "posts", "here").title == "Here"
    with pytest.raises(PostNotFoundError):
        find_post(posts_by_section, Section.POSTS, "missing")
    with pytest.raises(PostNotFoundError):
        find_post(posts_by_section, "essays", "here")


def test_post_is_immutable():
    post = Post(
        slug="x",
        title="X",
        date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        spoiler=None,
        content="",
        section=Section.POSTS,
    )
    with pytest.raises(AttributeError):
        post.title = "Y"
