"""Pod Upload Gateway 应用"""
