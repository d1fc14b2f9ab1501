# migrations/env.py
from logging.config import fileConfig

from alembic import context
from flask import current_app, has_app_context
from sqlalchemy import engine_from_config, pool

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _load_metadata():
    """Metadata + URL from the running app (`flask db ...`) or a fresh one (plain `alembic`)."""
    if has_app_context():
        app = current_app
    else:
        from rentals import create_app
        # the schema belongs to the migrations here, not to create_all()
        app = create_app({"AUTO_CREATE_TABLES": False})

    with app.app_context():
        import rentals.models  # noqa: F401  (register tables)
        db = app.extensions["migrate"].db
        url = app.config.get("SQLALCHEMY_DATABASE_URI")
        if not url:
            raise RuntimeError("SQLALCHEMY_DATABASE_URI is not configured on the Flask app.")
        return db.metadata, url


target_metadata, db_url = _load_metadata()
config.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))


def _include_object(obj, name, type_, reflected, compare_to):
    # tables that exist in the database but not in rentals.models are left alone
    if type_ == "table" and reflected and compare_to is None:
        return False
    return True


def run_migrations_offline():
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        include_object=_include_object,
        render_as_batch=db_url.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            include_object=_include_object,
            # SQLite cannot ALTER most constraints in place
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
