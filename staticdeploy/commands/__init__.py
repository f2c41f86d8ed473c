"""staticdeploy CLI commands"""
