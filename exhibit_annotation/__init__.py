import exhibit_annotation.utils.i18n  # noqa:F401
