"""Keep WordPress plugins and themes in sync with composer.json.

Submodules:
- manifest: load/modify/save composer.json
- registry: wordpress.org availability lookups
- commands: add/remove/install/uninstall workflows
- errors: exception types
- wordpress: WP-CLI wrappers and site inventory
"""

# Intentionally minimal; logic lives in submodules.
