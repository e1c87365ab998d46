# vidstore

vidstore is a small WSGI service built on Werkzeug. It keeps users,
refresh tokens and video metadata in a SQLite database, serves media
assets (such as thumbnails) from a local directory, and serves a static
front-end application from another directory.

## Installation

```
pip install .
```

To run the test suite, install the test extra as well:

```
pip install ".[test]"
pytest
```

## Configuration

The server reads its settings from the environment. A `.env` file in the
current directory is loaded first, if one exists. Every variable below
must be set to a non-empty value; the server logs the first missing one
and exits with status 1 otherwise.

| Variable        | Meaning                                                        |
|-----------------|----------------------------------------------------------------|
| `DB_PATH`       | Path of the SQLite database file                               |
| `JWT_SECRET`    | Required, but not used by any endpoint at present              |
| `PLATFORM`      | Deployment platform; `dev` enables the reset endpoint          |
| `FILEPATH_ROOT` | Directory holding the static front-end application             |
| `ASSETS_ROOT`   | Directory where media assets are stored and served from        |
| `S3_BUCKET`     | Required, but not used at present                              |
| `S3_REGION`     | Required, but not used at present                              |
| `S3_CF_DISTRO`  | Required, but not used at present                              |
| `PORT`          | Port the server listens on (must be an integer)                |

An example `.env`:

```
DB_PATH=./vidstore.db
JWT_SECRET=secret
PLATFORM=dev
FILEPATH_ROOT=./app
ASSETS_ROOT=./assets
S3_BUCKET=placeholder
S3_REGION=placeholder
S3_CF_DISTRO=placeholder
PORT=8091
```

The database tables are created when the database is opened, and the
assets directory is created at start-up if it does not exist yet.

## Running

```
vidstore
```

The server listens on all interfaces on `PORT` and logs the address of
the front-end, for example `http://localhost:8091/app/`. The command
takes no options besides `--help`.

## Endpoints

| Method | Path                    | Description                                          |
|--------|-------------------------|------------------------------------------------------|
| `GET`  | `/app/...`              | Static files from `FILEPATH_ROOT`                    |
| `GET`  | `/assets/...`           | Files from `ASSETS_ROOT`, with `Cache-Control: no-store` |
| `GET`  | `/api/videos/{videoID}` | Fetch a single video's metadata as JSON              |
| `POST` | `/admin/reset`          | Empty every table (only when `PLATFORM=dev`)         |

For the static paths, a request for a directory is answered with that
directory's `index.html`; paths that leave the root are refused with 404.

`GET /api/videos/{videoID}` answers 400 with `{"error": "Invalid video ID"}`
when the ID is not a UUID, and 404 with `{"error": "Couldn't get video"}`
when no such video exists.

`POST /admin/reset` answers 403 with a plain-text message unless
`PLATFORM` is `dev`; otherwise it deletes all rows and answers 200 with
`Database reset to initial state`.

## What the service does not do

The HTTP interface has no endpoints for creating users, logging in,
refreshing or revoking tokens, creating, listing or deleting videos, or
uploading thumbnails or video files. Access tokens are neither issued
nor checked, and nothing is sent to a storage bucket. Users, tokens and
videos can only be created and changed through the Python API below.

## Library use

### Asset names

```python
import uuid
from vidstore.assets import get_asset_path, media_type_to_ext

media_type_to_ext("image/png")   # ".png"
media_type_to_ext("nonsense")    # ".bin"

video_id = uuid.uuid4()
get_asset_path(video_id, "image/jpeg")   # f"{video_id}.jpeg"
```

### Configuration

`load_config` reads from any mapping instead of the process environment
and raises `ConfigError` for the first missing or empty variable:

```python
from vidstore.config import ConfigError, load_config

try:
    config = load_config({"DB_PATH": "vidstore.db"})
except ConfigError as exc:
    print(exc)   # JWT_SECRET environment variable is not set
```

An `ApiConfig` also offers `ensure_assets_dir()`, `asset_disk_path(name)`
and `asset_url(name)`, the last giving
`http://localhost:<PORT>/assets/<name>`.

### Database

`vidstore.database.Client` opens a SQLite database and can be used as a
context manager. Lookups return `None` when nothing matches.

```python
from vidstore.database import Client, CreateUserParams, CreateVideoParams

password = "password"
with Client(":memory:") as db:
    user = db.create_user(CreateUserParams(email="user@example.com", password=password))
    video = db.create_video(
        CreateVideoParams(title="Demo", description="A test", user_id=user.id)
    )
    video.thumbnail_url = "http://localhost:8091/assets/thumb.png"
    db.update_video(video)
    db.get_videos(user.id)   # newest first
```

The password is stored exactly as given; hash it before storing it if
needed. `User`, `Video` and `RefreshToken` each have a `to_dict()`
method giving their JSON form. Refresh tokens are handled with
`create_refresh_token`, `get_refresh_token`, `revoke_refresh_token`,
`delete_refresh_token` and `get_user_by_refresh_token`; `reset()`
deletes every row.

### WSGI application

`vidstore.server.create_app(config, db)` builds the WSGI application from
an `ApiConfig` and a `Client`, so it can be mounted in any WSGI server.
`vidstore.server.no_cache_middleware(app)` wraps any WSGI application so
its responses carry `Cache-Control: no-store`. JSON responses are built
with `vidstore.responses.json_response` and `error_response`.