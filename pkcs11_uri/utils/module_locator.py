import os
from ctypes.util import find_library
from logging import Logger

from pkcs11_uri.uri.PKCS11_uri import PKCS11Uri
from pkcs11_uri.uri.PKCS11_uri_errors import PKCS11UriSessionError

# Environment variable with the library used when nothing else names one
PKCS11_MODULE_VARIABLE = "PKCS11_MODULE"

default_module_directories = [
    "/usr/lib/pkcs11",
    "/usr/lib/softhsm",
    "/usr/lib/x86_64-linux-gnu/pkcs11",
    "/usr/lib/x86_64-linux-gnu/softhsm",
    "/usr/lib/x86_64-linux-gnu",
    "/usr/lib64/pkcs11",
    "/usr/lib64",
    "/usr/local/lib/softhsm",
    "/usr/local/lib",
    "/usr/lib",
]

_prefixes = ["", "lib"]
_suffixes = ["", ".so", ".dylib", ".dll"]


# Find the library file of a module given by its "module-name" ("softhsm2"
# is found as libsofthsm2.so)
def find_module(
    module_name: str, module_directories: list[str] | None = None
) -> str | None:
    if module_directories is None:
        module_directories = default_module_directories
    for directory in module_directories:
        for prefix in _prefixes:
            for suffix in _suffixes:
                path = os.path.join(directory, prefix + module_name + suffix)
                if os.path.isfile(path):
                    return path
    return find_library(module_name)


# Library to load for the URI: "module-path", then "module-name",
# then pksc11_lib, then the PKCS11_MODULE environment variable.
# A "module-path" that is a directory is searched for "module-name".
def resolve_module(
    uri: PKCS11Uri,
    pksc11_lib: str | None = None,
    module_directories: list[str] | None = None,
    logger: Logger | None = None,
) -> str:
    module_path = uri.module_path
    module_name = uri.module_name
    if module_path is not None:
        if not os.path.isdir(module_path):
            return module_path
        if module_name is not None:
            found = find_module(module_name, [module_path])
            if found is not None:
                return found
        raise PKCS11UriSessionError(
            "No module found in directory {0}".format(module_path)
        )
    if module_name is not None:
        found = find_module(module_name, module_directories)
        if found is not None:
            if logger is not None:
                logger.info(
                    "Module name {0} resolved to {1}".format(module_name, found)
                )
            return found
        raise PKCS11UriSessionError(
            "Module {0} can not be found".format(module_name)
        )
    if pksc11_lib is not None:
        return pksc11_lib
    env_module = os.environ.get(PKCS11_MODULE_VARIABLE)
    if env_module:
        return env_module
    raise PKCS11UriSessionError("No PKCS11 module given")
