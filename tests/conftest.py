"""Global test fixtures."""

import os

import logfire

# Keep tests independent of any real upstream configured in the environment.
# This must happen at module load time, before Config is instantiated.
for _var in ("EIP_LUMINAIRES_URL", "EIP_OUTAGE_AREAS_URL", "EIP_OUTAGE_POINTS_URL", "EIP_GATEWAY_API_KEY"):
    os.environ.pop(_var, None)
os.environ.pop("PINSYNC_CONFIG_FILE", None)

logfire.configure(send_to_logfire=False, console=False)
