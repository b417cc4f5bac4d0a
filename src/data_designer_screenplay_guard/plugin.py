from data_designer.plugins.plugin import Plugin, PluginType

screenplay_guard_plugin = Plugin(
    config_qualified_name="data_designer_screenplay_guard.config.ScreenplayGuardColumnConfig",
    impl_qualified_name="data_designer_screenplay_guard.generator.ScreenplayGuardColumnGenerator",
    plugin_type=PluginType.COLUMN_GENERATOR,
)
