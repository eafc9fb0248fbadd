"""
layer_publisher.integrations - External Service Integrations
==============================================================

Adapters for the services the publish pipeline talks to. Components
depend on the abstract interfaces here, never on boto3 directly.

Available Integrations:
    - aws: region directory (EC2) and layer repository (Lambda)
"""
