"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from schemagen.core.models.config import GenerationConfig

USERS_TS = textwrap.dedent("""\
    import { pgTable, serial, text } from "drizzle-orm/pg-core";
    import { relations } from "drizzle-orm";

    export const users = pgTable("users", {
      id: serial("id").primaryKey(),
      name: text("name"),
    });

    export const usersRelations = relations(users, ({ many }) => ({
      posts: many(posts),
    }));
""")

POSTS_TS = textwrap.dedent("""\
    import { pgTable, serial, integer } from "drizzle-orm/pg-core";

    export const posts = pgTable("posts", {
      id: serial("id").primaryKey(),
      authorId: integer("author_id"),
    });

    export const comments = pgTable("comments", {
      id: serial("id").primaryKey(),
    });
""")


@pytest.fixture
def schema_dir(tmp_path: Path) -> Path:
    """A schema dir with two table modules."""
    root = tmp_path / "src" / "db" / "schema"
    root.mkdir(parents=True)
    (root / "users.ts").write_text(USERS_TS)
    (root / "posts.ts").write_text(POSTS_TS)
    return root


@pytest.fixture
def make_config(tmp_path: Path):
    """Factory for GenerationConfig with test-friendly defaults."""

    def _make(schema_dir: Path, output_file: Path | None = None, **kwargs) -> GenerationConfig:
        if output_file is None:
            output_file = schema_dir / "index.ts"
        kwargs.setdefault("exclude_patterns", ("**/index.ts",))
        kwargs.setdefault("exclude_table_patterns", (".*Relations$",))
        return GenerationConfig(
            schema_dir=schema_dir,
            output_file=output_file,
            **kwargs,
        )

    return _make
