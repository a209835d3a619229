from __future__ import annotations

import os
import sys

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from salon import create_app
from salon.extensions import db


def main() -> None:
    flask_app = create_app()

    # A store that cannot be reached at startup is fatal.
    with flask_app.app_context():
        try:
            db.session.execute(text("SELECT 1"))
            db.create_all()
        except SQLAlchemyError as exc:
            flask_app.logger.exception("Database connection failed", exc_info=exc)
            sys.exit(1)

    # show what routes are actually mounted
    flask_app.logger.info("=== URL MAP ===")
    for r in sorted(flask_app.url_map.iter_rules(), key=lambda x: x.rule):
        flask_app.logger.info("%s", r)

    debug_enabled = os.environ.get("FLASK_DEBUG", "0") in {"1", "true", "True"}
    flask_app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 7001)), debug=debug_enabled)


if __name__ == "__main__":
    main()
