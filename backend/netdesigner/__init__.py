"""NetDesigner backend"""
