"""Unit tests for ProjectAnalyzer over small generated projects."""

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path

import pytest

from api_doc_generator.core.analyzer import ProjectAnalyzer, analyze
from api_doc_generator.core.conventions import FrameworkConventions
from api_doc_generator.core.sources import discover_source_files, is_source_file
from api_doc_generator.openapi import JSON_MEDIA_TYPE, Document, Info, Schema

WriteProject = Callable[[dict[str, str]], Path]

MODEL_USER = """
package model

type User struct {
    Name  string `json:"name"`
    Email string `json:"email"`
}
"""

HANDLER_USER = """
package handler

import "github.com/gin-gonic/gin"

type User struct {
    Nick string `json:"nick"`
}

func GetUser(c *gin.Context) {
    user := User{}
    c.JSON(200, user)
}

func Health(c *gin.Context) {
    c.JSON(200, gin.H{"status": "ok"})
}
"""

ROUTER = """
package router

import "github.com/gin-gonic/gin"

func Setup(r *gin.Engine) {
    r.GET("/health", Health)
    v1 := r.Group("/api/v1")
    users := v1.Group("/users")
    users.GET("/:id", GetUser)
}
"""


def data_schema(document: Document, path: str, method: str) -> Schema:
    operation = document.operation(path, method)
    assert operation is not None
    content = operation.responses["200"].content
    assert content is not None
    properties = content[JSON_MEDIA_TYPE].schema_.properties
    assert properties is not None
    return properties["data"]


class TestSourceDiscovery:
    """Tests for walking the project tree."""

    def test_is_source_file(self) -> None:
        assert is_source_file(Path("main.go"))
        assert not is_source_file(Path("main_test.go"))
        assert not is_source_file(Path("README.md"))

    def test_excluded_segments_and_sorting(self, write_project: WriteProject) -> None:
        root = write_project(
            {
                "z/last.go": "package z\n",
                "a/first.go": "package a\n",
                "a/first_test.go": "package a\n",
                "vendor/lib/lib.go": "package lib\n",
                "tools/gen.go": "package tools\n",
                "node_modules/x/x.go": "package x\n",
                "main.go": "package main\n",
            }
        )
        files = [path.relative_to(root).as_posix() for path in discover_source_files(root)]
        assert files == ["a/first.go", "main.go", "z/last.go"]

    def test_custom_exclusions(self, write_project: WriteProject) -> None:
        root = write_project({"gen/out.go": "package gen\n", "vendor/v.go": "package vendor\n"})
        conventions = FrameworkConventions(excluded_segments=frozenset({"gen"}))
        files = [path.relative_to(root).as_posix() for path in discover_source_files(root, conventions)]
        assert files == ["vendor/v.go"]


class TestProjectAnalyzer:
    """Tests for a full analysis run."""

    def test_routes_and_linking(self, write_project: WriteProject) -> None:
        root = write_project(
            {"model/user.go": MODEL_USER, "handler/user.go": HANDLER_USER, "router/router.go": ROUTER}
        )
        analyzer = ProjectAnalyzer(info=Info(title="Users"))
        document = analyzer.analyze(root)

        assert set(document.paths) == {"/health", "/api/v1/users/{id}"}
        assert [(route.method, route.path, route.handler) for route in analyzer.routes] == [
            ("GET", "/health", "Health"),
            ("GET", "/api/v1/users/{id}", "GetUser"),
        ]
        assert data_schema(document, "/api/v1/users/{id}", "get") == Schema.reference("User")
        assert data_schema(document, "/health", "get") == Schema(type="object")
        assert document.info.title == "Users"

    @pytest.mark.parametrize(
        "model_dir,handler_dir",
        [("model", "handler"), ("a_model", "z_handler"), ("z_model", "a_handler")],
    )
    def test_model_layer_wins_regardless_of_order(
        self, write_project: WriteProject, model_dir: str, handler_dir: str
    ) -> None:
        root = write_project({f"{model_dir}/user.go": MODEL_USER, f"{handler_dir}/user.go": HANDLER_USER})
        document = analyze(root)
        user = document.components.schemas["User"]
        assert user.properties is not None
        assert list(user.properties) == ["name", "email"]

    def test_output_is_deterministic(self, write_project: WriteProject) -> None:
        root = write_project(
            {"model/user.go": MODEL_USER, "handler/user.go": HANDLER_USER, "router/router.go": ROUTER}
        )
        analyzer = ProjectAnalyzer(info=Info(title="Users"))
        first = analyzer.analyze(root).to_json()
        second = analyzer.analyze(root).to_json()
        assert first == second
        assert len(analyzer.routes) == 2
        assert json.loads(first)["openapi"] == "3.0.0"

    def test_embedding_across_files(self, write_project: WriteProject) -> None:
        root = write_project(
            {
                "model/base.go": """
                    package model

                    type Base struct {
                        ID uint `json:"id"`
                    }
                """,
                "model/account.go": """
                    package model

                    type Account struct {
                        Base
                        Name string `json:"name"`
                    }
                """,
            }
        )
        account = analyze(root).components.schemas["Account"]
        assert account.properties is not None
        assert list(account.properties) == ["name", "id"]
        assert account.required == ["name", "id"]

    def test_service_resolution(self, write_project: WriteProject) -> None:
        root = write_project(
            {
                "service/order/order.go": """
                    package order

                    func List() ([]model.Order, error) {
                        var data []model.Order
                        return data, nil
                    }
                """,
                "service/common.go": """
                    package service

                    func Version() (string, error) {
                        return "1", nil
                    }
                """,
                "handler/order.go": """
                    package handler

                    func ListOrders(c *gin.Context) {
                        data, err := order.List()
                        if err != nil {
                            return
                        }
                        response.Success(c, data)
                    }
                """,
                "main.go": """
                    package main

                    func main() {
                        r := gin.Default()
                        r.GET("/orders", handler.ListOrders)
                    }
                """,
            }
        )
        analyzer = ProjectAnalyzer()
        document = analyzer.analyze(root)
        assert analyzer.services.get("order", "List") is not None
        assert analyzer.services.get("service", "Version") is not None
        assert analyzer.routes[0].response_type == "[]Order"
        assert data_schema(document, "/orders", "get") == Schema(type="array", items=Schema.reference("Order"))

    def test_broken_file_is_skipped(self, write_project: WriteProject, caplog: pytest.LogCaptureFixture) -> None:
        root = write_project({"model/user.go": MODEL_USER, "model/broken.go": "package model\n\ntype {\n"})
        analyzer = ProjectAnalyzer()
        with caplog.at_level(logging.WARNING, logger="api_doc_generator.core.analyzer"):
            document = analyzer.analyze(root)
        assert "User" in document.components.schemas
        assert analyzer.skipped == [root / "model" / "broken.go"]
        assert "Skipping" in caplog.text

    def test_document_info_from_environment(
        self, write_project: WriteProject, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("API_DOC_TITLE", "Shop API")
        monkeypatch.setenv("API_DOC_VERSION", "3.1.4")
        document = analyze(write_project({"main.go": "package main\n"}))
        assert document.info.title == "Shop API"
        assert document.info.version == "3.1.4"
        assert document.paths == {}

    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            analyze(tmp_path / "missing")

    def test_root_is_a_file(self, tmp_path: Path) -> None:
        target = tmp_path / "main.go"
        target.write_text("package main\n", encoding="utf-8")
        with pytest.raises(NotADirectoryError):
            analyze(target)


def deny_scandir(monkeypatch: pytest.MonkeyPatch, denied: Path) -> None:
    real_scandir = os.scandir

    def scandir(path):  # type: ignore[no-untyped-def]
        if Path(path) == denied:
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)


class TestUnreadableTrees:
    """Tests for directories that cannot be listed."""

    def test_unreadable_root_aborts(self, write_project: WriteProject, monkeypatch: pytest.MonkeyPatch) -> None:
        root = write_project({"a.go": "package a\n"})
        deny_scandir(monkeypatch, root)
        with pytest.raises(PermissionError):
            analyze(root)

    def test_unreadable_subdirectory_is_skipped(
        self, write_project: WriteProject, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = write_project({"main.go": "package main\n", "locked/a.go": "package locked\n"})
        deny_scandir(monkeypatch, root / "locked")
        with caplog.at_level(logging.WARNING, logger="api_doc_generator.core.sources"):
            files = discover_source_files(root)
        assert files == [root / "main.go"]
        assert "Skipping unreadable path" in caplog.text
