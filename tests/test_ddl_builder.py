import pytest

from conftest import make_schema
from ddl.ddl_builder import (
    build_statements,
    column_ddl,
    comment_statements,
    enum_ddl,
    format_default,
    index_ddl,
    index_name,
    resolve_type,
    sql_comment,
    table_ddl,
    view_ddl,
)
from ddl.dialects import MARIADB, MYSQL, ORACLE, POSTGRESQL, REGISTRY, SQLITE, SQLSERVER
from reml.models import Column, EnumDef, Index, Table, View

USERS = {
    "users": {
        "columns": {
            "id": {"type": "uuid", "primaryKey": True},
            "email": {"type": "varchar", "length": 255, "nullable": False, "unique": True},
        }
    }
}

STATUS = {"status": {"type": "string", "values": ["active", "o'brien"]}}
LEVEL = {"level": {"type": "integer", "values": [1, 2, 3]}}


def _col(**kw):
    return Column.model_validate(kw)


# ---- columns -----------------------------------------------------------------

def test_users_table_postgresql():
    schema = make_schema(USERS)
    ddl = table_ddl("users", schema.tables["users"], schema, POSTGRESQL)
    assert ddl == (
        'CREATE TABLE IF NOT EXISTS "users" (\n'
        '  "id" UUID NOT NULL PRIMARY KEY,\n'
        '  "email" VARCHAR(255) NOT NULL UNIQUE\n'
        ");\n"
    )


def test_mysql_auto_increment_is_a_suffix():
    col = _col(type="bigint", primaryKey=True, autoIncrement=True)
    line = column_ddl("id", col, MYSQL, {}, inline_pk=True)
    assert line == "  `id` BIGINT AUTO_INCREMENT NOT NULL PRIMARY KEY"


def test_postgresql_auto_increment_replaces_type():
    assert "SERIAL" in column_ddl("id", _col(type="integer", autoIncrement=True), POSTGRESQL, {})
    line = column_ddl("id", _col(type="bigint", autoIncrement=True), POSTGRESQL, {})
    assert line == '  "id" BIGSERIAL'


def test_sqlserver_and_oracle_identity():
    assert column_ddl("id", _col(type="int", autoIncrement=True), SQLSERVER, {}) == "  [id] INT IDENTITY(1,1)"
    assert column_ddl("id", _col(type="integer", autoIncrement=True), ORACLE, {}) == (
        '  "id" NUMBER(10) GENERATED ALWAYS AS IDENTITY'
    )


def test_unique_is_dropped_on_inline_primary_key():
    line = column_ddl("id", _col(type="int", unique=True), POSTGRESQL, {}, inline_pk=True)
    assert line.endswith("PRIMARY KEY")
    assert "UNIQUE" not in line


def test_unknown_type_passes_through_uppercased():
    assert resolve_type(_col(type="citext"), POSTGRESQL, {}) == "CITEXT"


def test_length_takes_precedence_over_precision():
    col = _col(type="decimal", length=12, precision=10, scale=2)
    assert resolve_type(col, POSTGRESQL, {}) == "DECIMAL(12)"
    assert resolve_type(_col(type="numeric", precision=8), POSTGRESQL, {}) == "NUMERIC(8)"
    assert resolve_type(_col(type="numeric", precision=8, scale=0), POSTGRESQL, {}) == "NUMERIC(8,0)"


# ---- enums -------------------------------------------------------------------

def test_enum_named_type_reference():
    enums = {"status": EnumDef.model_validate(STATUS["status"])}
    assert resolve_type(_col(type="varchar", enumRef="status"), POSTGRESQL, enums) == '"status"'


def test_enum_inline_literal():
    enums = {"status": EnumDef.model_validate(STATUS["status"])}
    for config in (MYSQL, MARIADB):
        assert resolve_type(_col(type="varchar", enumRef="status"), config, enums) == (
            "ENUM('active', 'o''brien')"
        )


def test_integer_enum_falls_back_to_integer_on_sqlite():
    enums = {"level": EnumDef.model_validate(LEVEL["level"])}
    assert resolve_type(_col(type="integer", enumRef="level"), SQLITE, enums) == "INTEGER"
    assert resolve_type(_col(type="integer", enumRef="level"), ORACLE, enums) == "NUMBER(10)"


def test_string_enum_falls_back_to_bounded_varchar():
    enums = {"status": EnumDef.model_validate(STATUS["status"])}
    assert resolve_type(_col(type="text", enumRef="status"), SQLSERVER, enums) == "VARCHAR(50)"
    assert resolve_type(_col(type="text", enumRef="status"), ORACLE, enums) == "VARCHAR2(50)"


def test_unresolvable_enum_ref_uses_declared_type():
    assert resolve_type(_col(type="varchar", enumRef="missing"), POSTGRESQL, {}) == "VARCHAR"


def test_enum_ddl_only_for_named_type_dialects():
    enum_def = EnumDef.model_validate({"label": "Status", "values": ["a", "it's"]})
    assert enum_ddl("status", enum_def, POSTGRESQL) == (
        "-- status: Status\n"
        "CREATE TYPE \"status\" AS ENUM ('a', 'it''s');\n"
    )
    assert enum_ddl("status", enum_def, MYSQL) is None
    assert enum_ddl("status", EnumDef.model_validate({"values": ["x"]}), POSTGRESQL).startswith("-- Enum: status\n")


# ---- arrays ------------------------------------------------------------------

def test_array_native_on_postgresql():
    assert resolve_type(_col(type="array", arrayOf="integer"), POSTGRESQL, {}) == "INTEGER[]"


@pytest.mark.parametrize(
    "config, expected",
    [(MYSQL, "JSON"), (SQLITE, "TEXT"), (SQLSERVER, "NVARCHAR(MAX)"), (ORACLE, "CLOB")],
)
def test_array_falls_back_to_json_type(config, expected):
    assert resolve_type(_col(type="array", arrayOf="text"), config, {}) == expected


# ---- defaults ----------------------------------------------------------------

@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "NULL"),
        (True, "TRUE"),
        (False, "FALSE"),
        (0, "0"),
        (2.5, "2.5"),
        ("active", "'active'"),
        ("O'Brien", "'O''Brien'"),
        ("NOW()", "NOW()"),
        ("current_timestamp", "CURRENT_TIMESTAMP"),
        ("nextval('seq')", "nextval('seq')"),
    ],
)
def test_format_default_postgresql(value, expected):
    assert format_default(value, POSTGRESQL) == expected


def test_default_functions_per_dialect():
    assert format_default("now()", MYSQL) == "CURRENT_TIMESTAMP"
    assert format_default("now()", SQLITE) == "(datetime('now'))"
    assert format_default("uuid()", SQLSERVER) == "NEWID()"
    assert format_default("gen_random_uuid()", ORACLE) == "SYS_GUID()"


def test_explicit_null_default_is_rendered():
    line = column_ddl("note", _col(type="text", default=None), POSTGRESQL, {})
    assert line == '  "note" TEXT DEFAULT NULL'
    assert "DEFAULT" not in column_ddl("note", _col(type="text"), POSTGRESQL, {})


# ---- tables ------------------------------------------------------------------

def test_composite_primary_key_clause():
    schema = make_schema({
        "memberships": {
            "columns": {"user_id": {"type": "int"}, "group_id": {"type": "int"}},
            "primaryKey": ["user_id", "group_id"],
        }
    })
    ddl = table_ddl("memberships", schema.tables["memberships"], schema, POSTGRESQL)
    assert '  "user_id" INT,\n' in ddl
    assert '  PRIMARY KEY ("user_id", "group_id")\n' in ddl
    assert "NOT NULL" not in ddl


def test_body_clause_order():
    schema = make_schema({
        "t": {
            "columns": {"a": {"type": "int"}, "b": {"type": "int"}, "p": {"type": "int"}},
            "primaryKey": ["a", "b"],
            "uniqueConstraints": [{"columns": ["a", "p"], "name": "uq_ap"}, {"columns": "b"}],
            "checkConstraints": [{"expression": "a > 0", "name": "ck_a"}, {"expression": ""}],
            "foreignKeys": [{"columns": "p", "references": {"table": "t", "columns": "a"}, "onUpdate": "NO ACTION"}],
        }
    })
    ddl = table_ddl("t", schema.tables["t"], schema, POSTGRESQL)
    body = ddl.split("(\n", 1)[1].rsplit("\n);", 1)[0].split(",\n")
    assert body[3:] == [
        '  PRIMARY KEY ("a", "b")',
        '  CONSTRAINT "uq_ap" UNIQUE ("a", "p")',
        '  UNIQUE ("b")',
        '  CONSTRAINT "ck_a" CHECK (a > 0)',
        "  CHECK ()",
        '  FOREIGN KEY ("p") REFERENCES "t" ("a") ON UPDATE NO ACTION',
    ]


def test_self_referencing_foreign_key_stays_in_table_body():
    schema = make_schema({
        "categories": {
            "columns": {"id": {"type": "int", "primaryKey": True}, "parent_id": {"type": "int"}},
            "foreignKeys": [{"columns": "parent_id", "references": {"table": "categories", "columns": "id"}}],
        }
    })
    ddl = table_ddl("categories", schema.tables["categories"], schema, POSTGRESQL)
    assert 'FOREIGN KEY ("parent_id") REFERENCES "categories" ("id")' in ddl


def test_qualified_name_and_no_if_not_exists():
    schema = make_schema({"users": {"schema": "app", "columns": {"id": {"type": "int"}}}})
    table = schema.tables["users"]
    assert table_ddl("users", table, schema, SQLSERVER).startswith("CREATE TABLE [app].[users] (")
    assert table_ddl("users", table, schema, ORACLE).startswith('CREATE TABLE "app"."users" (')
    assert table_ddl("users", table, schema, SQLITE).startswith('CREATE TABLE IF NOT EXISTS "app"."users" (')


def test_table_label_and_inline_description_comment():
    schema = make_schema({"users": {"label": "Users", "description": "People", "columns": {"id": {"type": "int"}}}})
    table = schema.tables["users"]
    assert table_ddl("users", table, schema, SQLITE).startswith("-- users: Users\n-- People\nCREATE TABLE")
    assert table_ddl("users", table, schema, POSTGRESQL).startswith("-- users: Users\nCREATE TABLE")


def test_mysql_alter_comment_follows_table():
    schema = make_schema({"users": {"description": "It's people", "columns": {"id": {"type": "int"}}}})
    ddl = table_ddl("users", schema.tables["users"], schema, MYSQL)
    assert ddl.endswith(");\n\nALTER TABLE `users` COMMENT = 'It''s people';\n")


# ---- indexes and views -------------------------------------------------------

def test_derived_index_name():
    index = Index.model_validate({"columns": ["a", {"column": "b"}]})
    assert index_name("t", index) == "idx_t_a_b"
    assert index_name("t", Index.model_validate({"name": "custom", "columns": "a"})) == "custom"


def test_index_method_placement():
    table = Table.model_validate({"columns": {"a": {"type": "int"}}})
    index = Index.model_validate({"columns": "a", "type": "hash", "unique": True})
    assert index_ddl("t", table, index, POSTGRESQL) == 'CREATE UNIQUE INDEX "idx_t_a" ON "t" USING hash ("a");\n'
    assert index_ddl("t", table, index, MYSQL) == "CREATE UNIQUE INDEX `idx_t_a` ON `t` (`a`) USING hash;\n"
    assert index_ddl("t", table, index, SQLITE) == 'CREATE UNIQUE INDEX "idx_t_a" ON "t" ("a");\n'
    assert index_ddl("t", table, index, SQLSERVER) == "CREATE UNIQUE INDEX [idx_t_a] ON [t] ([a]);\n"


def test_index_order_nulls_and_where():
    table = Table.model_validate({"schema": "app", "columns": {"a": {"type": "int"}}})
    index = Index.model_validate({
        "columns": [{"column": "a", "order": "DESC", "nulls": "LAST"}],
        "where": "a IS NOT NULL",
    })
    assert index_ddl("t", table, index, POSTGRESQL) == (
        'CREATE INDEX "idx_t_a" ON "app"."t" ("a" DESC NULLS LAST) WHERE a IS NOT NULL;\n'
    )


def test_view_query_verbatim():
    view = View.model_validate({"query": "SELECT 1\n  FROM dual;\n"})
    assert view_ddl("v", view, ORACLE) == 'CREATE VIEW "v" AS\nSELECT 1\n  FROM dual;\n'
    materialized = View.model_validate({"query": "SELECT 1", "materialized": True, "schema": "rpt"})
    assert view_ddl("v", materialized, POSTGRESQL) == 'CREATE MATERIALIZED VIEW "rpt"."v" AS\nSELECT 1;\n'


# ---- comments and whole-schema order -----------------------------------------

def test_comment_statements_compose_label_and_description():
    schema = make_schema({
        "users": {
            "label": "Users",
            "description": "All people",
            "columns": {
                "id": {"type": "int", "label": "ID"},
                "name": {"type": "text", "description": "Full name"},
                "plain": {"type": "text"},
            },
        },
        "bare": {"columns": {"x": {"type": "int"}}},
    })
    assert comment_statements(schema, POSTGRESQL) == (
        "\n-- Comments\n"
        "COMMENT ON TABLE \"users\" IS 'Users - All people';\n"
        "COMMENT ON COLUMN \"users\".\"id\" IS 'ID';\n"
        "COMMENT ON COLUMN \"users\".\"name\" IS 'Full name';\n"
    )


def test_no_comment_block_without_labels():
    assert comment_statements(make_schema({"t": {"columns": {"x": {"type": "int"}}}}), POSTGRESQL) is None


def test_build_statements_order(shop):
    blocks = build_statements(shop, POSTGRESQL)
    assert blocks[0].startswith("-- order_status: Order status\nCREATE TYPE")
    assert blocks[1].startswith("-- customers: Customers\nCREATE TABLE")
    assert blocks[2].startswith("-- orders: Orders\nCREATE TABLE")
    assert blocks[3].startswith('CREATE UNIQUE INDEX "customers_email_lower"')
    assert blocks[4].startswith('CREATE INDEX "idx_orders_customer_id_created_at"')
    assert blocks[5].startswith('CREATE VIEW "open_orders"')
    assert blocks[6].startswith("\n-- Comments\n")
    assert len(blocks) == 7


def test_shop_tables_postgresql(shop):
    blocks = build_statements(shop, POSTGRESQL)
    assert blocks[1] == (
        "-- customers: Customers\n"
        'CREATE TABLE IF NOT EXISTS "customers" (\n'
        '  "id" UUID NOT NULL DEFAULT gen_random_uuid() PRIMARY KEY,\n'
        '  "email" VARCHAR(255) NOT NULL UNIQUE,\n'
        '  "tags" TEXT[]\n'
        ");\n"
    )
    assert blocks[2] == (
        "-- orders: Orders\n"
        'CREATE TABLE IF NOT EXISTS "orders" (\n'
        '  "id" BIGINT NOT NULL PRIMARY KEY,\n'
        '  "customer_id" UUID NOT NULL,\n'
        "  \"status\" \"order_status\" DEFAULT 'pending',\n"
        '  "total" DECIMAL(10,2) DEFAULT 0,\n'
        '  "created_at" TIMESTAMP DEFAULT NOW(),\n'
        '  FOREIGN KEY ("customer_id") REFERENCES "customers" ("id") ON DELETE CASCADE\n'
        ");\n"
    )


def test_shop_mysql_has_no_enum_type_or_comment_block(shop):
    blocks = build_statements(shop, MYSQL)
    joined = "\n".join(blocks)
    assert "CREATE TYPE" not in joined
    assert "COMMENT ON" not in joined
    assert "`status` ENUM('pending', 'shipped', 'it''s done') DEFAULT 'pending'" in joined
    assert "ALTER TABLE `orders` COMMENT = 'Customer orders';" in joined
    assert "`tags` JSON" in joined
    assert "(`email`) USING btree WHERE email IS NOT NULL;" in joined


@pytest.mark.parametrize("name", list(REGISTRY))
def test_every_dialect_builds_the_fixture(shop, name):
    blocks = build_statements(shop, REGISTRY[name])
    assert sum(b.count("CREATE TABLE") for b in blocks) == 2
    assert sum(b.count("INDEX") for b in blocks) == 2


# ---- lenient inputs ----------------------------------------------------------

def test_symbolic_length_passes_through():
    assert resolve_type(_col(type="nvarchar", length="MAX"), SQLSERVER, {}) == "NVARCHAR(MAX)"


def test_composite_foreign_key_pairs_columns_in_order():
    schema = make_schema({
        "lines": {
            "columns": {"order_id": {"type": "int"}, "line_no": {"type": "int"}},
            "foreignKeys": [{
                "columns": ["order_id", "line_no"],
                "references": {"table": "slots", "columns": ["oid", "lno"]},
            }],
        },
        "slots": {"columns": {"oid": {"type": "int"}, "lno": {"type": "int"}}},
    })
    ddl = table_ddl("lines", schema.tables["lines"], schema, POSTGRESQL)
    assert '  FOREIGN KEY ("order_id", "line_no") REFERENCES "slots" ("oid", "lno")\n' in ddl


def test_sql_comment_prefixes_every_line():
    assert sql_comment("one") == "-- one"
    assert sql_comment("First line\nSecond line\n") == "-- First line\n-- Second line"
    assert sql_comment("a\n\nb") == "-- a\n--\n-- b"


def test_multiline_labels_stay_commented():
    schema = make_schema({
        "users": {
            "label": "Users\nand admins",
            "description": "First line\nSecond line\n",
            "columns": {"id": {"type": "int"}},
        }
    })
    ddl = table_ddl("users", schema.tables["users"], schema, SQLITE)
    assert ddl.startswith(
        "-- users: Users\n-- and admins\n-- First line\n-- Second line\nCREATE TABLE"
    )
    enum_def = EnumDef.model_validate({"label": "Status\nof things", "values": ["a"]})
    assert enum_ddl("status", enum_def, POSTGRESQL).startswith("-- status: Status\n-- of things\nCREATE TYPE")


def test_yes_no_enum_renders_quoted_values():
    from reml.loader import loads_schema

    schema = loads_schema(
        "reml: '1.0'\ndatabase: mysql\n"
        "enums:\n  answer:\n    values: [yes, no]\n"
        "tables:\n  t:\n    columns:\n      a: {type: varchar, enumRef: answer}\n"
    )
    line = column_ddl("a", schema.tables["t"].columns["a"], MYSQL, schema.enums)
    assert line == "  `a` ENUM('yes', 'no')"
