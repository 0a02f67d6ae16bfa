from hotswap import config

if config.HOTSWAP_LOG:
    # log output was requested explicitly, configure it before any evaluation starts
    from hotswap.logging.setup import setup_logging_from_config

    setup_logging_from_config()
