"""webapp-autoscale - Azure Web App autoscale sample

Philosophy:
- Ruthless simplicity
- Pure policy construction, thin SDK orchestration
- Credentials only from the environment
- Always clean up what was provisioned

Provisions a Web App and App Service plan, attaches an autoscale setting with
metric-based and schedule-based rules, then deletes the resource group.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
