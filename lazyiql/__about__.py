__app_name__ = "lazyiql"
__version__ = "0.1.0"
