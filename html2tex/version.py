HTML2TEX_VERSION = "1.0.0"
