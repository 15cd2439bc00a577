"""Tests for project record decoding and per-category loading."""

import datetime as dt
from pathlib import Path

import pytest

from staticgen.errors import ProjectDecodeError
from staticgen.projects import Project, decode_projects, load_project_categories, load_projects

from conftest import write_tree

GOOD_YAML = """title: Engine
subtitle: A renderer
date: 2021-03-04
tags: [c, graphics]
image: engine.png
imageURL: https://example.com/engine.png
urls:
  - demo:https://x.io/a:b
  - source:https://github.com/me/engine
description: Draws things.
"""


class TestDecodeProjects:
    def test_yaml_record(self):
        (project,) = decode_projects(GOOD_YAML.encode(), Path("engine.yaml"))
        assert project.title == "Engine"
        assert project.image_url == "https://example.com/engine.png"
        assert project.tags == ["c", "graphics"]
        assert project.date == dt.date(2021, 3, 4)
        assert project.links == ["demo:https://x.io/a:b", "source:https://github.com/me/engine"]

    def test_tagged_links_split_on_first_colon(self):
        (project,) = decode_projects(GOOD_YAML.encode(), Path("engine.yaml"))
        assert project.tagged_links[0] == ("demo", "https://x.io/a:b")

    def test_multi_document_yaml(self):
        data = b"title: One\n---\ntitle: Two\n---\n"
        projects = decode_projects(data, Path("many.yml"))
        assert [p.title for p in projects] == ["One", "Two"]

    def test_json_object_and_list(self):
        single = decode_projects(b'{"title": "Solo", "urls": ["site:https://solo.dev"]}', Path("solo.json"))
        many = decode_projects(b'[{"title": "A"}, {"title": "B"}]', Path("many.json"))
        assert single[0].links == ["site:https://solo.dev"]
        assert [p.title for p in many] == ["A", "B"]

    def test_missing_required_field_is_fatal(self):
        with pytest.raises(ProjectDecodeError) as exc:
            decode_projects(b"subtitle: no title\n", Path("bad.yaml"))
        assert exc.value.path == Path("bad.yaml")

    def test_wrong_type_is_fatal(self):
        with pytest.raises(ProjectDecodeError):
            decode_projects(b"title: T\ntags: 5\n", Path("bad.yaml"))

    def test_syntax_error_is_fatal(self):
        with pytest.raises(ProjectDecodeError):
            decode_projects(b'{"title": ', Path("bad.json"))

    def test_non_mapping_document_is_fatal(self):
        with pytest.raises(ProjectDecodeError):
            decode_projects(b"- just\n- a list\n", Path("bad.yaml"))

    def test_unknown_keys_ignored(self):
        (project,) = decode_projects(b"title: T\nstars: 12\n", Path("t.yaml"))
        assert project == Project(title="T")


class TestLoadProjects:
    def test_one_entry_per_record_in_file_order(self, tmp_path):
        write_tree(
            tmp_path,
            {
                "b.yaml": "title: B\n",
                "a.json": '{"title": "A"}',
                "c.yml": "title: C1\n---\ntitle: C2\n",
                "README.md": "not a project",
            },
        )
        assert [p.title for p in load_projects(tmp_path)] == ["A", "B", "C1", "C2"]

    def test_one_bad_record_fails_whole_load(self, tmp_path):
        write_tree(tmp_path, {"a.yaml": "title: A\n", "b.yaml": "title: B\n---\nsubtitle: broken\n"})
        with pytest.raises(ProjectDecodeError):
            load_projects(tmp_path)


class TestLoadProjectCategories:
    def test_categories_sorted_by_date(self, tmp_path):
        write_tree(
            tmp_path,
            {
                "featured/old.yaml": "title: Old\ndate: 2019-01-01\n",
                "featured/new.yaml": "title: New\ndate: 2023-01-01\n",
                "featured/undated.yaml": "title: Undated\n",
                "mini/tool.yaml": "title: Tool\n",
            },
        )
        categories = load_project_categories(tmp_path)
        assert list(categories) == ["featured", "mini"]
        assert [p.title for p in categories["featured"]] == ["New", "Old", "Undated"]
        assert [p.title for p in categories["mini"]] == ["Tool"]

    def test_loose_files_use_empty_category(self, tmp_path):
        write_tree(tmp_path, {"solo.yaml": "title: Solo\n"})
        assert [p.title for p in load_project_categories(tmp_path)[""]] == ["Solo"]

    def test_missing_root_is_empty(self, tmp_path):
        assert load_project_categories(tmp_path / "nope") == {}
