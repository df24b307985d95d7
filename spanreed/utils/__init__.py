from .json_handlers import (
    load_config,
    is_jsonable,
    )
from .bridge_configs import (
    ConnectionSettings,
    EnvironmentsConfig,
    DispatchConfig,
    VaultConfig,
    UNSET_USER_ID,
    )
