"""Route blueprints package.

Each module exposes a Flask blueprint; `sekretar.create_app` registers them.
"""
