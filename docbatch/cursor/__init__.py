import os
from importlib.resources import files

import envtoml

from docbatch import AttrDict

CONFIG_FILE_ENV_VARIABLE = "DOCBATCH_CURSOR_CONFIG_FILE"

if config_file := os.getenv(CONFIG_FILE_ENV_VARIABLE):
    with open(config_file) as fp:
        config = AttrDict(envtoml.load(fp))
else:
    with files(__name__).joinpath("config.toml").open() as fp:
        config = AttrDict(envtoml.load(fp))
