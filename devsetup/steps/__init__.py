# devsetup/steps/__init__.py
# -*- coding: utf-8 -*-
"""
Provisioning step implementations.

Every step function takes the `ExecutionContext` and the run's
`ProvisioningServices`; `devsetup.pipeline_definitions` binds the services
and orders the steps.
"""
