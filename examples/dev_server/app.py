"""
Development server.

    uvicorn examples.dev_server.app:app --reload
"""

from restful import create_app

from examples.dev_server.hello_world import HelloWorldController

app = create_app([
    {"controller": HelloWorldController()},
])
