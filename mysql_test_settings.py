"""
This is an extension of the default test_settings.py file that uses MySQL for
the backend. The classification app runs fine on SQLite, but sibling name
uniqueness and browse ordering depend on the per-vendor collations set in
vocabulary_tree.lib.fields, so it's worth running the suite against MySQL too:

    pytest --ds=mysql_test_settings

If you need a compatible MySQL server running locally, spin one up with:
docker run --rm \
    -e MYSQL_DATABASE=test_vt_db \
    -e MYSQL_USER=test_vt_user \
    -e MYSQL_PASSWORD=test_vt_pass \
    -e MYSQL_RANDOM_ROOT_PASSWORD=true \
    -p 3306:3306 mysql:8
"""

from test_settings import *  # pylint: disable=wildcard-import,unused-wildcard-import

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.mysql",
        "NAME": "vt_db",
        "USER": "test_vt_user",
        "PASSWORD": "test_vt_pass",
        "HOST": "127.0.0.1",
        "PORT": "3306",
        "OPTIONS": {
            "charset": "utf8mb4"
        }
    }
}
