"""Plugin serving the HelloWorld custom resource."""

import logging

from hello_operator.models.helloworld import HelloWorldSpec

from .base import PluginBase

logger = logging.getLogger(__name__)


class HelloWorldPlugin(PluginBase):
    """Runs a busybox pod printing the message of each HelloWorld."""

    name = "helloworld"
    version = "1.0.0"
    description = "Runs a pod printing the message of each HelloWorld resource"
    models = (HelloWorldSpec,)

    def setup(self, context):
        from hello_operator.controller import HelloWorldReconciler
        from hello_operator.handlers import helloworld_handler

        reconciler = HelloWorldReconciler.from_config(
            context.store, context.observer, context.config
        )
        helloworld_handler.configure(reconciler, context.config)
        if context.config.pull_secret_name:
            logger.info(
                f"Image pull secret {context.config.pull_secret_name} is copied from "
                f"{context.config.pull_secret_source_namespace}"
            )

    def teardown(self):
        from hello_operator.handlers import helloworld_handler

        helloworld_handler.configure(None)

    def register_handlers(self):
        # Importing the module attaches its kopf decorators.
        from hello_operator.handlers import helloworld_handler  # noqa: F401
