"""依赖注入"""
