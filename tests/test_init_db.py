from sqlalchemy import inspect, text

import init_db
from eonchat.db.session import Base, engine


def test_create_missing_tables():
    Base.metadata.drop_all(bind=engine)

    init_db.create_missing_tables()

    assert {"users", "messages", "friend_requests", "notifications", "otps"} <= set(inspect(engine).get_table_names())


def test_add_missing_columns():
    with engine.connect() as conn:
        conn.execute(text('DROP TABLE "otps"'))
        conn.execute(text('CREATE TABLE "otps" (id CHAR(32) PRIMARY KEY, email VARCHAR NOT NULL)'))
        conn.commit()

    added = init_db.add_missing_columns()

    assert sorted(added) == ["otps.created_at", "otps.otp"]
    columns = {col["name"] for col in inspect(engine).get_columns("otps")}
    assert {"otp", "created_at"} <= columns
