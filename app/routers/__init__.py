"""路由"""
